import logging

from django_x402_prompts.choices import RequestLogStatusTypes, RequestLogTypes
from django_x402_prompts.exceptions import (
    PaymentReferenceAlreadyUsedError,
    PaymentRequiredError,
    PromptGenerationError,
)
from django_x402_prompts.models import Purchase
from django_x402_prompts.services.payment_gate_service import PaymentGateService
from django_x402_prompts.services.payment_log_service import PaymentLogService
from django_x402_prompts.services.prompt_refinement_service import (
    PromptRefinementService,
)
from django_x402_prompts.solana.enums import PaymentDecisionEnum

logger = logging.getLogger(__name__)


class PromptPurchaseService:
    def __init__(
        self,
        payment_gate_service: PaymentGateService | None = None,
        prompt_refinement_service: PromptRefinementService | None = None,
        payment_log_service: PaymentLogService | None = None,
    ):
        self.payment_log_service = payment_log_service or PaymentLogService()
        self.payment_gate_service = payment_gate_service or PaymentGateService(
            payment_log_service=self.payment_log_service
        )
        self.prompt_refinement_service = (
            prompt_refinement_service or PromptRefinementService()
        )

    def purchase_refined_prompt(
        self, signature: str, sender_address: str, goal: str, details: str = ""
    ) -> Purchase:
        """
        Settles the payment for one request and spends it on exactly one
        refined prompt.

        Flow:
        1. Refuse a transaction reference that already paid for a purchase.
        2. Settle the payment through the payment gate.
        3. Claim the reference with a ``pending`` purchase.
        4. Call the language model and mark the purchase ``success`` or ``failed``.

        Raises:
            PaymentReferenceAlreadyUsedError: The reference already funded a purchase.
            PaymentRequiredError: The payment is missing or not confirmed.
            PromptGenerationError: Payment was captured but the LLM call failed.
        """
        if self.payment_log_service.is_reference_consumed(signature):
            raise PaymentReferenceAlreadyUsedError(signature)

        decision = self.payment_gate_service.settle_payment(signature, sender_address)
        if decision != PaymentDecisionEnum.PAID:
            raise PaymentRequiredError()

        purchase = self.payment_log_service.claim_reference(
            transaction_reference=signature,
            wallet_address=sender_address,
            goal=goal,
            details=details,
        )

        try:
            refined_prompt = self.prompt_refinement_service.refine_prompt(goal, details)
        except PromptGenerationError as exc:
            self.payment_log_service.mark_purchase_failed(purchase.id, str(exc))
            self.payment_log_service.log_event(
                RequestLogTypes.OPENAI_CALL,
                {"txId": signature, "error": str(exc)},
                RequestLogStatusTypes.ERROR,
            )
            raise

        self.payment_log_service.mark_purchase_success(purchase.id, refined_prompt)
        self.payment_log_service.log_event(
            RequestLogTypes.OPENAI_CALL,
            {"input": {"goal": goal, "details": details}, "output": refined_prompt},
        )
        logger.info(f"Prompt refined for purchase_id={purchase.id}")

        purchase.refresh_from_db()
        return purchase
