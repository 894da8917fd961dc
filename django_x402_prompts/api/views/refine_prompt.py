from rest_framework import generics, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from django_x402_prompts.api.helpers import payment_required_response
from django_x402_prompts.api.serializers import (
    RefinedPromptSerializer,
    RefinePromptSerializer,
)
from django_x402_prompts.choices import RequestLogTypes
from django_x402_prompts.exceptions import (
    PaymentReferenceAlreadyUsedError,
    PaymentRequiredError,
    PromptGenerationError,
    ViewException,
)
from django_x402_prompts.services.payment_log_service import PaymentLogService
from django_x402_prompts.services.prompt_purchase_service import (
    PromptPurchaseService,
)


class RefinePromptView(generics.GenericAPIView):
    permission_classes = [AllowAny]
    serializer_class = RefinePromptSerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        goal = serializer.validated_data["goal"]
        details = serializer.validated_data.get("details", "")
        tx_id = serializer.validated_data.get("tx_id")
        sender_address = serializer.validated_data.get("sender_address")

        payment_log_service = PaymentLogService()
        payment_log_service.log_event(
            RequestLogTypes.PROMPT_REQUEST,
            {
                "goal": goal,
                "details": details,
                "txId": tx_id,
                "senderAddress": sender_address,
            },
        )

        if not tx_id or not sender_address:
            return payment_required_response("tx_id and sender_address required")

        try:
            purchase = PromptPurchaseService(
                payment_log_service=payment_log_service
            ).purchase_refined_prompt(
                signature=tx_id,
                sender_address=sender_address,
                goal=goal,
                details=details,
            )
        except PaymentReferenceAlreadyUsedError as exc:
            return payment_required_response(str(exc))
        except PaymentRequiredError as exc:
            return payment_required_response(str(exc))
        except PromptGenerationError:
            raise ViewException(
                "AI error: unable to refine the prompt, please try again later",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return Response(
            RefinedPromptSerializer(dict(refined_prompt=purchase.refined_prompt)).data
        )
