import json

import httpx
import pytest
from solana.exceptions import SolanaRpcException

from django_x402_prompts.exceptions import (
    RpcForbiddenError,
    RpcRateLimitedError,
    RpcResponseError,
    SolanaRpcError,
)
from django_x402_prompts.solana.base_solana_client import (
    BaseSolanaClient,
    get_base_solana_client,
    reset_base_solana_client,
)
from django_x402_prompts.solana.utils import build_rpc_url, mask_rpc_url

RPC_URL = "https://rpc.example.com"


def _client_with_transport(handler, **kwargs):
    client = BaseSolanaClient(rpc_url=RPC_URL, **kwargs)
    client._raw_http_client = httpx.Client(
        transport=httpx.MockTransport(handler), headers=client._headers
    )
    return client


class TestRpcUrl:

    def test_api_key_appended_as_query_param(self):
        client = BaseSolanaClient(rpc_url=RPC_URL, api_key="secret")

        assert client._rpc_url == f"{RPC_URL}?api-key=secret"
        assert client.masked_rpc_url == f"{RPC_URL}?api-key=***"

    def test_api_key_sent_as_header(self):
        client = BaseSolanaClient(
            rpc_url=RPC_URL, api_key="secret", api_key_header="x-api-key"
        )

        assert client._rpc_url == RPC_URL
        assert client._headers["x-api-key"] == "secret"

    def test_existing_api_key_query_param_is_kept(self):
        assert build_rpc_url(f"{RPC_URL}?api-key=abc", "secret") == f"{RPC_URL}?api-key=abc"

    def test_mask_rpc_url_without_key(self):
        assert mask_rpc_url(RPC_URL) == RPC_URL


class TestRpcCall:

    def test_returns_result(self):
        requests = []

        def handler(request):
            requests.append(json.loads(request.content))
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "ok"})

        client = _client_with_transport(handler)

        assert client.rpc_call("getHealth") == "ok"
        assert requests[0]["method"] == "getHealth"
        assert requests[0]["params"] == []
        assert requests[0]["jsonrpc"] == "2.0"

    def test_http_429_is_rate_limited(self):
        client = _client_with_transport(
            lambda request: httpx.Response(429, text="Too Many Requests")
        )

        with pytest.raises(RpcRateLimitedError):
            client.rpc_call("getTransaction", ["sig"])

    def test_http_403_is_forbidden(self):
        client = _client_with_transport(lambda request: httpx.Response(403, text="nope"))

        with pytest.raises(RpcForbiddenError):
            client.rpc_call("getAccountInfo", ["addr"])

    def test_rpc_error_object_with_rate_limit_message(self):
        client = _client_with_transport(
            lambda request: httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32005, "message": "rate limit exceeded"}},
            )
        )

        with pytest.raises(RpcRateLimitedError):
            client.rpc_call("getSignatureStatuses", [["sig"]])

    def test_rpc_error_object(self):
        client = _client_with_transport(
            lambda request: httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "Invalid params"}},
            )
        )

        with pytest.raises(RpcResponseError) as exc_info:
            client.rpc_call("simulateTransaction", ["tx"])

        assert exc_info.value.rpc_code == -32602
        assert exc_info.value.rpc_message == "Invalid params"

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _client_with_transport(handler)

        with pytest.raises(SolanaRpcError) as exc_info:
            client.rpc_call("getHealth")

        assert not isinstance(exc_info.value, RpcRateLimitedError)

    def test_malformed_response(self):
        client = _client_with_transport(
            lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1})
        )

        with pytest.raises(SolanaRpcError, match="Malformed"):
            client.rpc_call("getHealth")


class TestClassifyRpcException:

    def test_wrapped_http_status_error(self):
        request = httpx.Request("POST", RPC_URL)
        response = httpx.Response(429, request=request)
        try:
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise SolanaRpcException("getSignatureStatuses failed") from e
        except SolanaRpcException as wrapped:
            classified = BaseSolanaClient.classify_rpc_exception(wrapped)

        assert isinstance(classified, RpcRateLimitedError)
        assert classified.status_code == 429

    def test_message_only_rate_limit(self):
        classified = BaseSolanaClient.classify_rpc_exception(
            ValueError("Too Many Requests")
        )

        assert isinstance(classified, RpcRateLimitedError)

    def test_other_errors(self):
        classified = BaseSolanaClient.classify_rpc_exception(ValueError("boom"))

        assert type(classified) is SolanaRpcError


def test_singleton_is_reset():
    first = get_base_solana_client()

    assert get_base_solana_client() is first

    reset_base_solana_client()

    assert get_base_solana_client() is not first
