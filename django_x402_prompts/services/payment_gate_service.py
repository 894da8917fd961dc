import logging

import stamina

from django_x402_prompts.exceptions import PaymentError
from django_x402_prompts.services.facilitator_client import FacilitatorClient
from django_x402_prompts.services.payment_log_service import PaymentLogService
from django_x402_prompts.services.verify_transaction_service import (
    VerifyTransactionService,
)
from django_x402_prompts.settings import x402_prompts_settings
from django_x402_prompts.signals import x402_payment_confirmed
from django_x402_prompts.solana.enums import (
    FacilitatorVerdictEnum,
    PaymentDecisionEnum,
    VerificationResultEnum,
)

logger = logging.getLogger(__name__)


class PaymentVerificationInconclusive(PaymentError):
    """Raised inside the retry loop so stamina retries an inconclusive verification."""


class PaymentGateService:
    """
    Request-level policy turning facilitator and on-chain results into a
    single paid / not-paid decision.

    An explicit facilitator answer is authoritative. Otherwise the on-chain
    verifier runs with a bounded number of attempts separated by a fixed
    delay, retrying only inconclusive results.
    """

    def __init__(
        self,
        verify_transaction_service: VerifyTransactionService | None = None,
        facilitator_client: FacilitatorClient | None = None,
        payment_log_service: PaymentLogService | None = None,
        attempts: int | None = None,
        retry_delay_seconds: float | None = None,
    ):
        self.facilitator_client = facilitator_client or FacilitatorClient()
        self.payment_log_service = payment_log_service or PaymentLogService()
        self.verify_transaction_service = (
            verify_transaction_service
            or VerifyTransactionService(
                facilitator_client=self.facilitator_client,
                payment_log_service=self.payment_log_service,
            )
        )
        self.attempts = attempts or x402_prompts_settings.PAYMENT_VERIFICATION_ATTEMPTS
        self.retry_delay_seconds = (
            retry_delay_seconds
            if retry_delay_seconds is not None
            else x402_prompts_settings.PAYMENT_RETRY_DELAY_SECONDS
        )

    def settle_payment(self, signature: str, sender_address: str) -> PaymentDecisionEnum:
        if self.facilitator_client.is_configured:
            verdict = self.facilitator_client.check_attestation(signature, sender_address)
            if verdict == FacilitatorVerdictEnum.VALID:
                logger.info(f"Facilitator validated payment: signature={signature}")
                # the attestation carries no amount, so the price is recorded
                self.payment_log_service.record_confirmed_payment(
                    transaction_reference=signature,
                    sender_address=sender_address,
                    receiver_address=x402_prompts_settings.RECEIVER_ADDRESS,
                    token_mint=x402_prompts_settings.USDC_MINT_ADDRESS,
                    amount_atomic=x402_prompts_settings.PRICE_ATOMIC_UNITS,
                    details={"settled_by": "facilitator"},
                )
                return self._paid(signature, sender_address, settled_by="facilitator")
            if verdict == FacilitatorVerdictEnum.INVALID:
                return PaymentDecisionEnum.NOT_PAID
            logger.warning(
                "Facilitator unreachable, falling back to on-chain verification"
            )

        result = self.verify_with_retries(signature, sender_address)

        if result == VerificationResultEnum.CONFIRMED:
            return self._paid(signature, sender_address, settled_by="on_chain")

        self.payment_log_service.record_failed_payment(
            transaction_reference=signature,
            sender_address=sender_address,
            receiver_address=x402_prompts_settings.RECEIVER_ADDRESS,
            token_mint=x402_prompts_settings.USDC_MINT_ADDRESS,
            amount_atomic=x402_prompts_settings.PRICE_ATOMIC_UNITS,
            details={"verification_result": result.value},
        )
        return PaymentDecisionEnum.NOT_PAID

    def verify_with_retries(
        self, signature: str, sender_address: str
    ) -> VerificationResultEnum:
        try:
            for attempt in stamina.retry_context(
                on=PaymentVerificationInconclusive,
                attempts=self.attempts,
                timeout=None,
                wait_initial=self.retry_delay_seconds,
                wait_max=self.retry_delay_seconds,
                wait_jitter=0,
                wait_exp_base=1,
            ):
                with attempt:
                    logger.info(
                        "Verification attempt %s/%s: signature=%s",
                        attempt.num,
                        self.attempts,
                        signature,
                    )
                    result = self.verify_transaction_service.verify(
                        signature, sender_address
                    )
                    if result == VerificationResultEnum.INCONCLUSIVE:
                        raise PaymentVerificationInconclusive(signature)
                    return result
        except PaymentVerificationInconclusive:
            logger.warning(
                f"Payment still inconclusive after {self.attempts} attempts: signature={signature}"
            )

        return VerificationResultEnum.INCONCLUSIVE

    def _paid(self, signature: str, sender_address: str, settled_by: str) -> PaymentDecisionEnum:
        x402_payment_confirmed.send(
            sender=self.__class__,
            signature=signature,
            sender_address=sender_address,
            settled_by=settled_by,
        )
        return PaymentDecisionEnum.PAID
