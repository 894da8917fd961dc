import json
import logging
from typing import Any

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.core import RPCException
from solders.signature import Signature

from django_x402_prompts.exceptions import SolanaRpcError
from django_x402_prompts.settings import x402_prompts_settings
from django_x402_prompts.solana.base_solana_client import BaseSolanaClient
from django_x402_prompts.solana.dtos import (
    AccountInfoDTO,
    LatestBlockhashDTO,
    ParsedTransactionDTO,
    SignatureStatusDTO,
)
from django_x402_prompts.solana.transaction_parser import (
    parse_signature_status,
    parse_transaction,
)

logger = logging.getLogger(__name__)

PROVIDER_EXCEPTIONS = (SolanaRpcException, RPCException, httpx.HTTPError, ValueError)


class SolanaTransactionQueryClient:
    """
    Read-only ledger queries used by payment verification and the RPC proxy.

    Every provider failure surfaces as a SolanaRpcError subclass, so callers
    can single out RpcRateLimitedError.
    """

    def __init__(self, base_solana_client: BaseSolanaClient):
        self.base_solana_client = base_solana_client

    def get_signature_status(self, signature: str) -> SignatureStatusDTO | None:
        try:
            response = self.base_solana_client.http_client.get_signature_statuses(
                [Signature.from_string(signature)], search_transaction_history=True
            )
        except PROVIDER_EXCEPTIONS as e:
            raise self.base_solana_client.classify_rpc_exception(e) from e

        statuses = response.value or []
        return parse_signature_status(signature, statuses[0] if statuses else None)

    def get_parsed_transaction(self, signature: str) -> ParsedTransactionDTO | None:
        """
        Fetches the transaction encoded as jsonParsed.

        Some providers report a confirmed signature before the parsed record
        is served, so an empty answer is retried once through a raw
        ``getTransaction`` call with explicit commitment and encoding.
        """
        payload = None
        try:
            response = self.base_solana_client.http_client.get_transaction(
                Signature.from_string(signature),
                encoding="jsonParsed",
                max_supported_transaction_version=0,
            )
            if response.value is not None:
                payload = json.loads(response.to_json()).get("result")
        except PROVIDER_EXCEPTIONS as e:
            raise self.base_solana_client.classify_rpc_exception(e) from e

        if not payload:
            logger.info(
                "getParsedTransaction returned nothing for %s; trying RPC getTransaction fallback",
                signature,
            )
            payload = self.get_transaction_via_rpc(signature)

        if not payload:
            return None

        return parse_transaction(signature, payload)

    def get_transaction_via_rpc(self, signature: str) -> dict | None:
        try:
            result = self.base_solana_client.rpc_call(
                "getTransaction",
                [
                    signature,
                    {
                        "encoding": "jsonParsed",
                        "commitment": x402_prompts_settings.RPC_CALLS_COMMITMENT,
                        "maxSupportedTransactionVersion": 0,
                    },
                ],
            )
        except SolanaRpcError as e:
            logger.warning(f"RPC getTransaction fallback failed: {e}")
            raise

        if result:
            logger.info(f"RPC getTransaction fallback succeeded: {signature}")
        return result or None

    def simulate_transaction(self, transaction_base64: str) -> Any:
        return self.base_solana_client.rpc_call(
            "simulateTransaction",
            [
                transaction_base64,
                {"sigVerify": False, "replaceRecentBlockhash": True, "encoding": "base64"},
            ],
        )

    def get_latest_blockhash(self) -> LatestBlockhashDTO | None:
        result = self.base_solana_client.rpc_call(
            "getLatestBlockhash",
            [{"commitment": x402_prompts_settings.RPC_CALLS_COMMITMENT}],
        )
        value = (result or {}).get("value")
        if not value:
            return None

        return LatestBlockhashDTO(
            blockhash=value["blockhash"],
            last_valid_block_height=value["lastValidBlockHeight"],
        )

    def get_account_info(self, address: str) -> AccountInfoDTO:
        result = self.base_solana_client.rpc_call(
            "getAccountInfo",
            [
                address,
                {
                    "encoding": "base64",
                    "commitment": x402_prompts_settings.RPC_CALLS_COMMITMENT,
                },
            ],
        )
        value = (result or {}).get("value")
        if not value:
            return AccountInfoDTO(exists=False)

        data = value.get("data")
        return AccountInfoDTO(
            exists=True,
            lamports=value.get("lamports"),
            owner=value.get("owner"),
            executable=bool(value.get("executable")),
            data=data[0] if isinstance(data, list) and data else None,
        )

    def get_health(self) -> Any:
        return self.base_solana_client.rpc_call("getHealth", [])
