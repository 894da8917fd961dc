import logging
from decimal import Decimal
from typing import Any

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from django_x402_prompts.choices import (
    PaymentRecordStatusTypes,
    PurchaseStatusTypes,
    RequestLogStatusTypes,
    RequestLogTypes,
)
from django_x402_prompts.exceptions import PaymentReferenceAlreadyUsedError
from django_x402_prompts.models import PaymentRecord, Purchase, RequestLog
from django_x402_prompts.settings import x402_prompts_settings

logger = logging.getLogger(__name__)


class PaymentLogService:
    """
    Durable store for request events, payment records and purchase history.

    Event logging is best effort: a database failure is logged and swallowed
    so it never changes a payment decision. Purchases are authoritative and
    their errors propagate.
    """

    @property
    def is_available(self) -> bool:
        return bool(x402_prompts_settings.EVENT_LOG_ENABLED)

    def log_event(
        self,
        request_type: str,
        details: dict[str, Any],
        status: RequestLogStatusTypes = RequestLogStatusTypes.SUCCESS,
    ) -> RequestLog | None:
        if not self.is_available:
            return None

        try:
            with transaction.atomic():
                return RequestLog.objects.create(
                    request_type=request_type, details=details, status=status
                )
        except DatabaseError as e:
            logger.error(f"Failed to write request log type={request_type}: {e}")
            return None

    def record_confirmed_payment(
        self,
        transaction_reference: str,
        sender_address: str,
        receiver_address: str,
        token_mint: str,
        amount_atomic: int,
        details: dict[str, Any] | None = None,
    ) -> PaymentRecord | None:
        """
        Idempotent: re-verifying a transaction returns the existing record.
        """
        defaults = dict(
            sender_address=sender_address,
            receiver_address=receiver_address,
            token_mint=token_mint,
            amount=self.atomic_to_token_amount(amount_atomic),
            amount_atomic=amount_atomic,
            details=details or {},
        )
        try:
            with transaction.atomic():
                payment_record, created = PaymentRecord.objects.get_or_create(
                    transaction_reference=transaction_reference,
                    status=PaymentRecordStatusTypes.CONFIRMED,
                    defaults=defaults,
                )
        except IntegrityError:
            payment_record = PaymentRecord.objects.filter(
                transaction_reference=transaction_reference,
                status=PaymentRecordStatusTypes.CONFIRMED,
            ).first()
            created = False
        except DatabaseError as e:
            logger.error(
                f"Failed to record confirmed payment for {transaction_reference}: {e}"
            )
            return None

        if created:
            logger.info(
                "Payment recorded: reference=%s sender=%s amount_atomic=%s",
                transaction_reference,
                sender_address,
                amount_atomic,
            )
            self.log_event(
                RequestLogTypes.PAYMENT,
                {
                    "txId": transaction_reference,
                    "sender": sender_address,
                    "receiver": receiver_address,
                    "amount": str(defaults["amount"]),
                    "mint": token_mint,
                    "status": PaymentRecordStatusTypes.CONFIRMED,
                },
            )
        return payment_record

    def record_failed_payment(
        self,
        transaction_reference: str,
        sender_address: str,
        receiver_address: str,
        token_mint: str,
        amount_atomic: int,
        details: dict[str, Any] | None = None,
    ) -> PaymentRecord | None:
        try:
            with transaction.atomic():
                payment_record = PaymentRecord.objects.create(
                    transaction_reference=transaction_reference,
                    sender_address=sender_address,
                    receiver_address=receiver_address,
                    token_mint=token_mint,
                    amount=self.atomic_to_token_amount(amount_atomic),
                    amount_atomic=amount_atomic,
                    status=PaymentRecordStatusTypes.FAILED,
                    details=details or {},
                )
        except DatabaseError as e:
            logger.error(
                f"Failed to record failed payment for {transaction_reference}: {e}"
            )
            return None

        self.log_event(
            RequestLogTypes.PAYMENT,
            {"txId": transaction_reference, "sender": sender_address, **(details or {})},
            RequestLogStatusTypes.FAILED,
        )
        return payment_record

    def is_reference_consumed(self, transaction_reference: str) -> bool:
        return Purchase.objects.filter(
            transaction_reference=transaction_reference
        ).exists()

    def claim_reference(
        self,
        transaction_reference: str,
        wallet_address: str,
        goal: str,
        details: str = "",
    ) -> Purchase:
        """
        Creates the pending purchase that consumes a transaction reference.

        Raises PaymentReferenceAlreadyUsedError when another request already
        claimed it.
        """
        try:
            with transaction.atomic():
                return Purchase.objects.create(
                    transaction_reference=transaction_reference,
                    wallet_address=wallet_address,
                    goal=goal,
                    details=details or "",
                    status=PurchaseStatusTypes.PENDING,
                )
        except IntegrityError:
            raise PaymentReferenceAlreadyUsedError(transaction_reference)

    def mark_purchase_success(self, purchase_id: int, refined_prompt: str) -> None:
        Purchase.objects.filter(id=purchase_id).update(
            status=PurchaseStatusTypes.SUCCESS,
            refined_prompt=refined_prompt,
            updated=timezone.now(),
        )

    def mark_purchase_failed(self, purchase_id: int, error_message: str) -> None:
        # funds were captured even though the deliverable failed
        Purchase.objects.filter(id=purchase_id).update(
            status=PurchaseStatusTypes.FAILED,
            error_message=error_message,
            updated=timezone.now(),
        )

    def get_purchase_history(
        self, wallet_address: str, limit: int | None = None
    ) -> list[Purchase]:
        limit = limit or x402_prompts_settings.HISTORY_PAGE_SIZE
        return list(
            Purchase.objects.filter(wallet_address=wallet_address).order_by(
                "-created", "-id"
            )[:limit]
        )

    @staticmethod
    def atomic_to_token_amount(amount_atomic: int) -> Decimal:
        return Decimal(amount_atomic) / Decimal(10**x402_prompts_settings.TOKEN_DECIMALS)
