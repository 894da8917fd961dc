import itertools
import logging
import re
from typing import Any

import httpx
from solana.rpc.api import Client

from django_x402_prompts.exceptions import (
    RpcForbiddenError,
    RpcRateLimitedError,
    RpcResponseError,
    SolanaRpcError,
)
from django_x402_prompts.settings import x402_prompts_settings
from django_x402_prompts.solana.utils import build_rpc_url, mask_rpc_url

solana_client_logger = logging.getLogger(__name__)

RATE_LIMIT_PATTERN = re.compile(r"429|too many requests|rate limit", re.IGNORECASE)
FORBIDDEN_PATTERN = re.compile(r"\b403\b|forbidden", re.IGNORECASE)


class BaseSolanaClient:

    def __init__(
        self,
        rpc_url: str = None,
        api_key: str = None,
        api_key_header: str = None,
        timeout: float = None,
    ):
        api_key = api_key or x402_prompts_settings.SOLANA_RPC_API_KEY
        api_key_header = api_key_header or x402_prompts_settings.SOLANA_RPC_API_KEY_HEADER
        self._timeout = timeout or x402_prompts_settings.SOLANA_RPC_TIMEOUT_SECONDS
        self._headers = {"Content-Type": "application/json", "Accept": "application/json"}

        if api_key and api_key_header:
            self._headers[api_key_header] = api_key
            self._rpc_url = rpc_url or x402_prompts_settings.SOLANA_RPC_URL
        else:
            self._rpc_url = build_rpc_url(
                rpc_url or x402_prompts_settings.SOLANA_RPC_URL, api_key
            )

        self._http_client = Client(
            endpoint=self._rpc_url,
            commitment=x402_prompts_settings.RPC_CALLS_COMMITMENT,
            timeout=self._timeout,
            extra_headers=self._headers,
        )
        self._raw_http_client = httpx.Client(timeout=self._timeout, headers=self._headers)
        self._request_ids = itertools.count(1)

        solana_client_logger.info(
            "Solana RPC configured: url=%s, auth=%s",
            self.masked_rpc_url,
            "header" if api_key_header and api_key else "query-param" if api_key else "none",
        )

    @property
    def http_client(self) -> Client:
        return self._http_client

    @property
    def masked_rpc_url(self) -> str:
        return mask_rpc_url(self._rpc_url)

    @property
    def is_available(self) -> bool:
        return bool(self._rpc_url)

    def rpc_call(self, method: str, params: list[Any] | None = None) -> Any:
        """
        Sends a raw JSON-RPC 2.0 request and returns its ``result`` member.

        Raises a SolanaRpcError subclass for transport failures, HTTP errors and
        JSON-RPC error objects, so callers can tell rate limiting apart from
        other provider failures.
        """
        body = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params or [],
        }
        solana_client_logger.info(
            "RPC POST method=%s url=%s", method, self.masked_rpc_url
        )

        try:
            response = self._raw_http_client.post(self._rpc_url, json=body)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            solana_client_logger.warning(f"RPC POST error: method={method}, error={e}")
            raise self.classify_rpc_exception(e) from e

        error = payload.get("error") if isinstance(payload, dict) else None
        if error:
            solana_client_logger.warning(
                "RPC POST returned error: method=%s, error=%s", method, error
            )
            raise self._classify_rpc_error(error)

        if not isinstance(payload, dict) or "result" not in payload:
            raise SolanaRpcError(f"Malformed RPC response for {method}")

        return payload["result"]

    @staticmethod
    def _classify_rpc_error(error: dict) -> SolanaRpcError:
        rpc_code = error.get("code") if isinstance(error, dict) else None
        message = str(error.get("message", "")) if isinstance(error, dict) else str(error)

        if rpc_code == 429 or RATE_LIMIT_PATTERN.search(message):
            return RpcRateLimitedError(message or "Rate limited", status_code=429)
        if rpc_code == 403:
            return RpcForbiddenError(message or "Forbidden", status_code=403)
        return RpcResponseError(rpc_code, message, data=error.get("data"))

    @staticmethod
    def classify_rpc_exception(exc: BaseException) -> SolanaRpcError:
        """
        Maps httpx / solana-py exceptions to the SolanaRpcError hierarchy.

        solana-py wraps transport errors in SolanaRpcException, so the cause
        chain is walked looking for the underlying HTTP status.
        """
        if isinstance(exc, SolanaRpcError):
            return exc

        status_code = None
        current = exc
        while current is not None and status_code is None:
            if isinstance(current, httpx.HTTPStatusError):
                status_code = current.response.status_code
            current = current.__cause__ or current.__context__

        message = str(exc) or exc.__class__.__name__
        if status_code == 429 or (status_code is None and RATE_LIMIT_PATTERN.search(message)):
            return RpcRateLimitedError(message, status_code=429)
        if status_code == 403 or (status_code is None and FORBIDDEN_PATTERN.search(message)):
            return RpcForbiddenError(message, status_code=403)
        return SolanaRpcError(message, status_code=status_code)


_base_solana_client_instance = None


def get_base_solana_client() -> BaseSolanaClient:
    """
    Get or create the process-wide BaseSolanaClient.
    Built lazily so settings are only read on first use.
    """
    global _base_solana_client_instance
    if _base_solana_client_instance is None:
        _base_solana_client_instance = BaseSolanaClient()
    return _base_solana_client_instance


def reset_base_solana_client():
    """
    Reset the singleton instance. Useful for testing.
    """
    global _base_solana_client_instance
    _base_solana_client_instance = None
