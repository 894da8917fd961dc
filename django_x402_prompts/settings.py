from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from solana.rpc.commitment import Commitment, Confirmed
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID

DEFAULT_RECEIVER_ADDRESS = "3LrVwGYoqUgvwUadaCrkpqBNqkgVcWpac7CYM99KbQHk"
DEFAULT_USDC_MINT_ADDRESS = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
DEFAULT_LLM_SYSTEM_PROMPT = (
    "You are a creative prompt for IA specialized. Create the perfect prompt to "
    "realize this goal, using the joined details. Reply only with the optimized prompt."
)


class X402PromptsSettings:
    """
    Settings accessor for django-x402-prompts.
    Reads from django.conf.settings.X402_PROMPTS dynamically.
    """

    def _get_setting(self, key, default=None, required=False):
        x402_config = getattr(settings, "X402_PROMPTS", {})
        value = x402_config.get(key, default)
        if required and value is None:
            raise ImproperlyConfigured(
                f"X402_PROMPTS['{key}'] is required in settings.py"
            )
        return value

    @property
    def SOLANA_RPC_URL(self) -> str:
        return self._get_setting("SOLANA_RPC_URL", required=True)

    @property
    def SOLANA_RPC_API_KEY(self) -> str | None:
        return self._get_setting("SOLANA_RPC_API_KEY")

    @property
    def SOLANA_RPC_API_KEY_HEADER(self) -> str | None:
        """
        Header name used to send SOLANA_RPC_API_KEY. When empty the key is
        appended to the RPC URL as the ``api-key`` query parameter instead.
        """
        return self._get_setting("SOLANA_RPC_API_KEY_HEADER")

    @property
    def SOLANA_RPC_TIMEOUT_SECONDS(self) -> float:
        return self._get_setting("SOLANA_RPC_TIMEOUT_SECONDS", default=10)

    @property
    def RPC_CALLS_COMMITMENT(self) -> Commitment:
        return self._get_setting("RPC_CALLS_COMMITMENT", default=Confirmed)

    @property
    def RECEIVER_ADDRESS(self) -> str:
        return self._get_setting("RECEIVER_ADDRESS", default=DEFAULT_RECEIVER_ADDRESS)

    @property
    def USDC_MINT_ADDRESS(self) -> str:
        return self._get_setting(
            "USDC_MINT_ADDRESS", default=DEFAULT_USDC_MINT_ADDRESS
        )

    @property
    def TOKEN_PROGRAM_ID(self) -> str:
        return self._get_setting("TOKEN_PROGRAM_ID", default=str(TOKEN_PROGRAM_ID))

    @property
    def ASSOCIATED_TOKEN_PROGRAM_ID(self) -> str:
        return self._get_setting(
            "ASSOCIATED_TOKEN_PROGRAM_ID", default=str(ASSOCIATED_TOKEN_PROGRAM_ID)
        )

    @property
    def TOKEN_DECIMALS(self) -> int:
        return self._get_setting("TOKEN_DECIMALS", default=6)

    @property
    def PRICE_USDC(self) -> Decimal:
        return Decimal(str(self._get_setting("PRICE_USDC", default="0.001")))

    @property
    def PRICE_ATOMIC_UNITS(self) -> int:
        """Price threshold in atomic units; any transfer at or above it qualifies."""
        return int(self.PRICE_USDC * (10**self.TOKEN_DECIMALS))

    @property
    def FACILITATOR_URL(self) -> str | None:
        url = self._get_setting("FACILITATOR_URL")
        if url and url.strip():
            return url.strip()
        return None

    @property
    def FACILITATOR_API_KEY(self) -> str | None:
        return self._get_setting("FACILITATOR_API_KEY")

    @property
    def FACILITATOR_TIMEOUT_SECONDS(self) -> float:
        return self._get_setting("FACILITATOR_TIMEOUT_SECONDS", default=10)

    @property
    def FACILITATOR_CROSS_CHECK(self) -> bool:
        return self._get_setting("FACILITATOR_CROSS_CHECK", default=True)

    @property
    def PAYMENT_VERIFICATION_ATTEMPTS(self) -> int:
        return self._get_setting("PAYMENT_VERIFICATION_ATTEMPTS", default=3)

    @property
    def PAYMENT_RETRY_DELAY_SECONDS(self) -> float:
        return self._get_setting("PAYMENT_RETRY_DELAY_SECONDS", default=2.0)

    @property
    def LLM_MODEL(self) -> str:
        return self._get_setting("LLM_MODEL", default="gpt-4o-mini")

    @property
    def LLM_TEMPERATURE(self) -> float:
        return self._get_setting("LLM_TEMPERATURE", default=0.6)

    @property
    def LLM_MAX_TOKENS(self) -> int:
        return self._get_setting("LLM_MAX_TOKENS", default=1500)

    @property
    def LLM_SYSTEM_PROMPT(self) -> str:
        return self._get_setting("LLM_SYSTEM_PROMPT", default=DEFAULT_LLM_SYSTEM_PROMPT)

    @property
    def HISTORY_PAGE_SIZE(self) -> int:
        return self._get_setting("HISTORY_PAGE_SIZE", default=50)

    @property
    def EVENT_LOG_ENABLED(self) -> bool:
        return self._get_setting("EVENT_LOG_ENABLED", default=True)


# Global instance - settings are read dynamically from django.conf.settings on each access
x402_prompts_settings = X402PromptsSettings()
