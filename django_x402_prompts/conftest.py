from unittest.mock import MagicMock

import pytest

from django_x402_prompts.choices import PurchaseStatusTypes
from django_x402_prompts.models import Purchase
from django_x402_prompts.solana.base_solana_client import reset_base_solana_client
from django_x402_prompts.solana.solana_token_client import (
    get_associated_token_address,
)
from django_x402_prompts.tests.factories import (
    RECEIVER_ADDRESS,
    SENDER_ADDRESS,
    TX_SIGNATURE,
    USDC_MINT_ADDRESS,
    build_signature_status,
)


@pytest.fixture(autouse=True)
def reset_client_singletons():
    """
    Automatically reset the shared RPC client before and after each test.
    Settings are read dynamically and don't need resetting.
    """
    reset_base_solana_client()

    yield

    reset_base_solana_client()


@pytest.fixture
def sender_address():
    return SENDER_ADDRESS


@pytest.fixture
def receiver_address():
    return RECEIVER_ADDRESS


@pytest.fixture
def tx_signature():
    return TX_SIGNATURE


@pytest.fixture
def sender_ata():
    return str(get_associated_token_address(SENDER_ADDRESS, USDC_MINT_ADDRESS))


@pytest.fixture
def receiver_ata():
    return str(get_associated_token_address(RECEIVER_ADDRESS, USDC_MINT_ADDRESS))


@pytest.fixture
def transaction_query_client():
    """Query client double returning a confirmed status; tests set the transaction."""
    client = MagicMock()
    client.get_signature_status.return_value = build_signature_status()
    return client


@pytest.fixture
def unconfigured_facilitator_client():
    client = MagicMock()
    client.is_configured = False
    return client


@pytest.fixture
def purchase(db):
    return Purchase.objects.create(
        wallet_address=SENDER_ADDRESS,
        transaction_reference=TX_SIGNATURE,
        goal="Write a haiku about the sea",
        details="Short, calm",
        refined_prompt="You are a poet...",
        status=PurchaseStatusTypes.SUCCESS,
    )
