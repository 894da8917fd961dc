from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.utils import timezone

from django_x402_prompts.choices import (
    PaymentRecordStatusTypes,
    PurchaseStatusTypes,
    RequestLogStatusTypes,
    RequestLogTypes,
)
from django_x402_prompts.exceptions import PaymentReferenceAlreadyUsedError
from django_x402_prompts.models import PaymentRecord, Purchase, RequestLog
from django_x402_prompts.services.payment_log_service import PaymentLogService
from django_x402_prompts.tests.factories import (
    RECEIVER_ADDRESS,
    SENDER_ADDRESS,
    TX_SIGNATURE,
    USDC_MINT_ADDRESS,
)

pytestmark = pytest.mark.django_db


@pytest.fixture
def payment_log_service():
    return PaymentLogService()


def _record_confirmed(payment_log_service, amount_atomic=1000):
    return payment_log_service.record_confirmed_payment(
        transaction_reference=TX_SIGNATURE,
        sender_address=SENDER_ADDRESS,
        receiver_address=RECEIVER_ADDRESS,
        token_mint=USDC_MINT_ADDRESS,
        amount_atomic=amount_atomic,
    )


class TestPaymentRecords:

    def test_confirmed_payment_is_recorded_once(self, payment_log_service):
        first = _record_confirmed(payment_log_service)
        second = _record_confirmed(payment_log_service, amount_atomic=5000)

        assert first.pk == second.pk
        assert second.amount_atomic == 1000
        assert second.amount == Decimal("0.001")
        assert PaymentRecord.objects.count() == 1
        assert (
            RequestLog.objects.filter(request_type=RequestLogTypes.PAYMENT).count() == 1
        )

    def test_failed_payments_do_not_block_confirmation(self, payment_log_service):
        payment_log_service.record_failed_payment(
            transaction_reference=TX_SIGNATURE,
            sender_address=SENDER_ADDRESS,
            receiver_address=RECEIVER_ADDRESS,
            token_mint=USDC_MINT_ADDRESS,
            amount_atomic=1000,
            details={"verification_result": "inconclusive"},
        )

        confirmed = _record_confirmed(payment_log_service)

        assert confirmed.status == PaymentRecordStatusTypes.CONFIRMED
        assert PaymentRecord.objects.filter(transaction_reference=TX_SIGNATURE).count() == 2
        failed_log = RequestLog.objects.get(status=RequestLogStatusTypes.FAILED)
        assert failed_log.details["verification_result"] == "inconclusive"


class TestEventLog:

    def test_disabled_event_log_writes_nothing(self, payment_log_service, settings):
        settings.X402_PROMPTS = {**settings.X402_PROMPTS, "EVENT_LOG_ENABLED": False}

        assert payment_log_service.log_event(RequestLogTypes.PROMPT_REQUEST, {}) is None
        assert not RequestLog.objects.exists()

    def test_database_error_is_not_raised(self, payment_log_service):
        with patch.object(
            RequestLog.objects, "create", side_effect=DatabaseError("disk full")
        ):
            result = payment_log_service.log_event(
                RequestLogTypes.PROMPT_REQUEST, {"goal": "x"}
            )

        assert result is None


class TestPurchases:

    def test_claim_reference_creates_pending_purchase(self, payment_log_service):
        purchase = payment_log_service.claim_reference(
            transaction_reference=TX_SIGNATURE,
            wallet_address=SENDER_ADDRESS,
            goal="Plan a trip",
        )

        assert purchase.status == PurchaseStatusTypes.PENDING
        assert payment_log_service.is_reference_consumed(TX_SIGNATURE)

    def test_claimed_reference_cannot_be_claimed_again(self, payment_log_service):
        payment_log_service.claim_reference(TX_SIGNATURE, SENDER_ADDRESS, "Plan a trip")

        with pytest.raises(PaymentReferenceAlreadyUsedError):
            payment_log_service.claim_reference(TX_SIGNATURE, SENDER_ADDRESS, "Another goal")

        assert Purchase.objects.count() == 1

    def test_mark_purchase_success_and_failed(self, payment_log_service):
        purchase = payment_log_service.claim_reference(
            TX_SIGNATURE, SENDER_ADDRESS, "Plan a trip"
        )

        payment_log_service.mark_purchase_success(purchase.id, "Refined prompt")
        purchase.refresh_from_db()
        assert purchase.status == PurchaseStatusTypes.SUCCESS
        assert purchase.refined_prompt == "Refined prompt"

        payment_log_service.mark_purchase_failed(purchase.id, "LLM down")
        purchase.refresh_from_db()
        assert purchase.status == PurchaseStatusTypes.FAILED
        assert purchase.error_message == "LLM down"

    def test_history_is_newest_first_and_capped(self, payment_log_service):
        now = timezone.now()
        for index in range(3):
            purchase = Purchase.objects.create(
                wallet_address=SENDER_ADDRESS,
                transaction_reference=f"reference-{index}",
                goal=f"goal {index}",
            )
            Purchase.objects.filter(id=purchase.id).update(
                created=now + timedelta(minutes=index)
            )
        Purchase.objects.create(
            wallet_address=RECEIVER_ADDRESS, transaction_reference="other", goal="other"
        )

        history = payment_log_service.get_purchase_history(SENDER_ADDRESS, limit=2)

        assert [purchase.goal for purchase in history] == ["goal 2", "goal 1"]
