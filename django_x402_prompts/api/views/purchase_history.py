from rest_framework import generics, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from django_x402_prompts.api.serializers import PurchaseSerializer
from django_x402_prompts.exceptions import ViewException
from django_x402_prompts.services.payment_log_service import PaymentLogService
from django_x402_prompts.settings import x402_prompts_settings
from django_x402_prompts.solana.utils import is_valid_address


class PurchaseHistoryView(generics.GenericAPIView):
    permission_classes = [AllowAny]
    serializer_class = PurchaseSerializer

    def get(self, request, *args, **kwargs):
        wallet_address = self.kwargs.get("wallet_address")

        if not is_valid_address(wallet_address):
            raise ViewException(
                "Invalid wallet address", status_code=status.HTTP_400_BAD_REQUEST
            )

        purchases = PaymentLogService().get_purchase_history(wallet_address)
        serializer = self.get_serializer(purchases, many=True)
        return Response(serializer.data)


class PaymentInfoView(generics.GenericAPIView):
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        return Response(
            {
                "amount": str(x402_prompts_settings.PRICE_USDC),
                "amount_atomic": x402_prompts_settings.PRICE_ATOMIC_UNITS,
                "receiver_address": x402_prompts_settings.RECEIVER_ADDRESS,
                "mint_address": x402_prompts_settings.USDC_MINT_ADDRESS,
            }
        )
