from rest_framework import serializers
from rest_framework.exceptions import ValidationError

from django_x402_prompts.models import Purchase
from django_x402_prompts.solana.utils import is_valid_address, is_valid_signature


class RefinePromptSerializer(serializers.Serializer):
    goal = serializers.CharField(max_length=2000)
    details = serializers.CharField(max_length=8000, required=False, allow_blank=True, default="")
    # Missing payment fields answer 402, so they are optional at this layer
    tx_id = serializers.CharField(max_length=128, required=False, allow_blank=True)
    sender_address = serializers.CharField(max_length=64, required=False, allow_blank=True)

    def validate_tx_id(self, value):
        if value and not is_valid_signature(value):
            raise ValidationError("tx_id is not a valid transaction signature")
        return value.strip()

    def validate_sender_address(self, value):
        if value and not is_valid_address(value):
            raise ValidationError("sender_address is not a valid Solana address")
        return value.strip()


class RefinedPromptSerializer(serializers.Serializer):
    refined_prompt = serializers.CharField()


class PaymentRequiredSerializer(serializers.Serializer):
    message = serializers.CharField()
    amount = serializers.CharField()
    receiver_address = serializers.CharField()


class PurchaseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Purchase
        fields = [
            "id",
            "wallet_address",
            "transaction_reference",
            "goal",
            "details",
            "refined_prompt",
            "status",
            "created",
        ]


class SimulateTransactionSerializer(serializers.Serializer):
    tx = serializers.CharField(help_text="base64-encoded transaction")


class AccountInfoRequestSerializer(serializers.Serializer):
    pubkey = serializers.CharField(max_length=64)

    def validate_pubkey(self, value):
        if not is_valid_address(value):
            raise ValidationError("pubkey is not a valid Solana address")
        return value
