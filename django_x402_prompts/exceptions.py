from typing import Union

from rest_framework.exceptions import APIException


class BaseAPIException(APIException):
    """
    Base API exception.
    """

    def __init__(self, error_message: Union[str, dict], status_code: int):
        self.error_message = error_message
        self.status_code = status_code
        super().__init__(self.error_message)


class ViewException(BaseAPIException):
    """Base view exception."""


class X402PromptsError(Exception):
    """Base exception for the library."""

    code: str = "x402_prompts_error"
    message: str = "x402 prompts error"


class InvalidAddressError(X402PromptsError, ValueError):
    code = "invalid_address"

    def __init__(self, address):
        super().__init__(f"Invalid Solana address: {address!r}")
        self.address = address


class SolanaRpcError(X402PromptsError):
    code = "solana_rpc_error"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RpcRateLimitedError(SolanaRpcError):
    code = "rpc_rate_limited"


class RpcForbiddenError(SolanaRpcError):
    code = "rpc_forbidden"


class RpcResponseError(SolanaRpcError):
    """JSON-RPC response carrying an ``error`` object."""

    code = "rpc_response_error"

    def __init__(self, rpc_code: int | None, message: str, data=None):
        super().__init__(f"RPC error {rpc_code}: {message}")
        self.rpc_code = rpc_code
        self.rpc_message = message
        self.data = data


class PaymentError(X402PromptsError):
    pass


class PaymentRequiredError(PaymentError):
    code = "payment_required"

    def __init__(self, message: str = "Payment invalid or not confirmed"):
        super().__init__(message)


class PaymentReferenceAlreadyUsedError(PaymentError):
    code = "payment_reference_already_used"

    def __init__(self, reference: str):
        super().__init__(
            f"Transaction reference '{reference}' was already used for a purchase"
        )
        self.reference = reference


class PromptGenerationError(X402PromptsError):
    code = "prompt_generation_error"
