from django.apps import AppConfig
from django.core.exceptions import ImproperlyConfigured


class X402PromptsConfig(AppConfig):
    name = "django_x402_prompts"
    verbose_name = "x402 Prompt Refinement"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        from .settings import x402_prompts_settings
        from .solana.utils import is_valid_address

        _ = x402_prompts_settings.SOLANA_RPC_URL

        # payments can never match against an unparseable receiver or mint
        for key in ("RECEIVER_ADDRESS", "USDC_MINT_ADDRESS"):
            if not is_valid_address(getattr(x402_prompts_settings, key)):
                raise ImproperlyConfigured(
                    f"X402_PROMPTS['{key}'] is not a valid Solana address"
                )

        if x402_prompts_settings.PRICE_ATOMIC_UNITS <= 0:
            raise ImproperlyConfigured("X402_PROMPTS['PRICE_USDC'] must be positive")
