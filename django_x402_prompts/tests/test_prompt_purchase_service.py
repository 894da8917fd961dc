from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from django_x402_prompts.choices import (
    PurchaseStatusTypes,
    RequestLogStatusTypes,
    RequestLogTypes,
)
from django_x402_prompts.exceptions import (
    PaymentReferenceAlreadyUsedError,
    PaymentRequiredError,
    PromptGenerationError,
)
from django_x402_prompts.models import Purchase, RequestLog
from django_x402_prompts.services.prompt_purchase_service import (
    PromptPurchaseService,
)
from django_x402_prompts.services.prompt_refinement_service import (
    PromptRefinementService,
)
from django_x402_prompts.solana.enums import PaymentDecisionEnum
from django_x402_prompts.tests.factories import SENDER_ADDRESS, TX_SIGNATURE

pytestmark = pytest.mark.django_db


@pytest.fixture
def payment_gate_service():
    gate = MagicMock()
    gate.settle_payment.return_value = PaymentDecisionEnum.PAID
    return gate


@pytest.fixture
def prompt_refinement_service():
    service = MagicMock()
    service.refine_prompt.return_value = "You are an expert travel planner..."
    return service


@pytest.fixture
def purchase_service(payment_gate_service, prompt_refinement_service):
    return PromptPurchaseService(
        payment_gate_service=payment_gate_service,
        prompt_refinement_service=prompt_refinement_service,
    )


def test_paid_request_returns_refined_prompt(
    purchase_service, payment_gate_service, prompt_refinement_service
):
    purchase = purchase_service.purchase_refined_prompt(
        TX_SIGNATURE, SENDER_ADDRESS, "Plan a trip", "Three days in Lisbon"
    )

    assert purchase.status == PurchaseStatusTypes.SUCCESS
    assert purchase.refined_prompt == "You are an expert travel planner..."
    assert purchase.transaction_reference == TX_SIGNATURE
    assert purchase.wallet_address == SENDER_ADDRESS
    payment_gate_service.settle_payment.assert_called_once_with(
        TX_SIGNATURE, SENDER_ADDRESS
    )
    prompt_refinement_service.refine_prompt.assert_called_once_with(
        "Plan a trip", "Three days in Lisbon"
    )
    assert RequestLog.objects.filter(
        request_type=RequestLogTypes.OPENAI_CALL,
        status=RequestLogStatusTypes.SUCCESS,
    ).exists()


def test_unpaid_request_creates_no_purchase(
    purchase_service, payment_gate_service, prompt_refinement_service
):
    payment_gate_service.settle_payment.return_value = PaymentDecisionEnum.NOT_PAID

    with pytest.raises(PaymentRequiredError):
        purchase_service.purchase_refined_prompt(TX_SIGNATURE, SENDER_ADDRESS, "Plan a trip")

    assert not Purchase.objects.exists()
    prompt_refinement_service.refine_prompt.assert_not_called()


def test_reused_reference_is_refused_before_settlement(
    purchase_service, payment_gate_service, purchase
):
    with pytest.raises(PaymentReferenceAlreadyUsedError):
        purchase_service.purchase_refined_prompt(TX_SIGNATURE, SENDER_ADDRESS, "Again")

    payment_gate_service.settle_payment.assert_not_called()


def test_llm_failure_marks_purchase_failed(
    purchase_service, prompt_refinement_service
):
    prompt_refinement_service.refine_prompt.side_effect = PromptGenerationError(
        "model overloaded"
    )

    with pytest.raises(PromptGenerationError):
        purchase_service.purchase_refined_prompt(TX_SIGNATURE, SENDER_ADDRESS, "Plan a trip")

    purchase = Purchase.objects.get(transaction_reference=TX_SIGNATURE)
    assert purchase.status == PurchaseStatusTypes.FAILED
    assert purchase.error_message == "model overloaded"
    assert RequestLog.objects.filter(
        request_type=RequestLogTypes.OPENAI_CALL,
        status=RequestLogStatusTypes.ERROR,
    ).exists()


@patch("django_x402_prompts.services.prompt_refinement_service.litellm.completion")
def test_completion_without_choices_marks_purchase_failed(
    mock_completion, payment_gate_service
):
    mock_completion.return_value = SimpleNamespace(choices=[])
    purchase_service = PromptPurchaseService(
        payment_gate_service=payment_gate_service,
        prompt_refinement_service=PromptRefinementService(),
    )

    with pytest.raises(PromptGenerationError):
        purchase_service.purchase_refined_prompt(TX_SIGNATURE, SENDER_ADDRESS, "Plan a trip")

    purchase = Purchase.objects.get(transaction_reference=TX_SIGNATURE)
    assert purchase.status == PurchaseStatusTypes.FAILED
    assert purchase.error_message
