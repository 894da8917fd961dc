from django.dispatch import Signal

# Sent by PaymentGateService once a transaction reference settles as paid.
# Receivers get: signature, sender_address, settled_by ("facilitator" or "on_chain").
x402_payment_confirmed = Signal()
