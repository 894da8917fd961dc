from django.core.management import BaseCommand, CommandError

from django_x402_prompts.services.payment_gate_service import PaymentGateService
from django_x402_prompts.services.verify_transaction_service import (
    VerifyTransactionService,
)
from django_x402_prompts.solana.utils import is_valid_address, is_valid_signature


class Command(BaseCommand):
    help = (
        "Verify a single transaction signature against the configured receiver, "
        "mint and price. Useful when investigating disputed payments."
    )

    def add_arguments(self, parser):
        parser.add_argument("signature", help="Transaction signature (base58).")
        parser.add_argument("sender", help="Claimed sender wallet address.")
        parser.add_argument(
            "--gate",
            action="store_true",
            help="Run the full payment gate (facilitator and retries) instead of a single verification.",
        )

    def handle(self, *args, **options):
        signature = options["signature"]
        sender = options["sender"]

        if not is_valid_signature(signature):
            raise CommandError(f"Invalid transaction signature: {signature}")
        if not is_valid_address(sender):
            raise CommandError(f"Invalid sender address: {sender}")

        if options["gate"]:
            result = PaymentGateService().settle_payment(signature, sender)
        else:
            result = VerifyTransactionService().verify(signature, sender)

        self.stdout.write(
            self.style.SUCCESS(f"Verification completed: signature={signature}, result={result.value}")
        )
