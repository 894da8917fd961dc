from rest_framework import status
from rest_framework.response import Response

from django_x402_prompts.api.serializers import PaymentRequiredSerializer
from django_x402_prompts.settings import x402_prompts_settings


def payment_required_response(message: str) -> Response:
    """402 answer carrying the fixed price and receiver so the client can pay and retry."""
    serializer = PaymentRequiredSerializer(
        dict(
            message=message,
            amount=str(x402_prompts_settings.PRICE_USDC),
            receiver_address=x402_prompts_settings.RECEIVER_ADDRESS,
        )
    )
    return Response(serializer.data, status=status.HTTP_402_PAYMENT_REQUIRED)
