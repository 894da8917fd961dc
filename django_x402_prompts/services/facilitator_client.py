import logging

import httpx

from django_x402_prompts.settings import x402_prompts_settings
from django_x402_prompts.solana.enums import FacilitatorVerdictEnum

logger = logging.getLogger(__name__)


class FacilitatorClient:
    """
    Client for an external x402 facilitator ``/verify`` endpoint.

    Only an explicit ``{"valid": false}`` answer is a denial. Timeouts,
    transport errors, non-2xx answers and malformed bodies are reported as
    UNREACHABLE so callers fall back to on-chain verification.
    """

    def __init__(
        self,
        facilitator_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.facilitator_url = facilitator_url or x402_prompts_settings.FACILITATOR_URL
        self.api_key = api_key or x402_prompts_settings.FACILITATOR_API_KEY
        self._http_client = http_client or httpx.Client(
            timeout=timeout or x402_prompts_settings.FACILITATOR_TIMEOUT_SECONDS
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.facilitator_url)

    @property
    def verify_url(self) -> str | None:
        if not self.facilitator_url:
            return None
        base_url = self.facilitator_url.rstrip("/")
        return base_url if base_url.endswith("/verify") else f"{base_url}/verify"

    def check_attestation(self, signature: str, sender_address: str) -> FacilitatorVerdictEnum:
        if not self.is_configured:
            return FacilitatorVerdictEnum.UNREACHABLE

        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        logger.info(
            "Calling facilitator /verify: url=%s, txId=%s, sender=%s",
            self.verify_url,
            signature,
            sender_address,
        )
        try:
            response = self._http_client.post(
                self.verify_url,
                json={"txId": signature, "sender": sender_address},
                headers=headers,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Error calling facilitator /verify: {e}")
            return FacilitatorVerdictEnum.UNREACHABLE

        valid = data.get("valid") if isinstance(data, dict) else None
        if not isinstance(valid, bool):
            logger.warning(f"Facilitator returned a malformed body: {data}")
            return FacilitatorVerdictEnum.UNREACHABLE

        if not valid:
            logger.info(f"Facilitator returned not valid: {data}")
            return FacilitatorVerdictEnum.INVALID

        return FacilitatorVerdictEnum.VALID
