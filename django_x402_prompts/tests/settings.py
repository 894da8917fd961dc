import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent

load_dotenv()

SECRET_KEY = "test-secret-key"
DEBUG = True

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.messages",
    "django.contrib.sessions",
    "rest_framework",
    "django_x402_prompts",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

USE_TZ = True

ROOT_URLCONF = "django_x402_prompts.urls"

X402_PROMPTS = {
    "SOLANA_RPC_URL": os.environ.get("SOLANA_RPC_URL", "https://api.devnet.solana.com"),
    "SOLANA_RPC_API_KEY": None,
    "RECEIVER_ADDRESS": "3LrVwGYoqUgvwUadaCrkpqBNqkgVcWpac7CYM99KbQHk",
    "USDC_MINT_ADDRESS": "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
    "PRICE_USDC": "0.001",
    "PAYMENT_VERIFICATION_ATTEMPTS": 3,
    "PAYMENT_RETRY_DELAY_SECONDS": 0,
    "FACILITATOR_URL": None,
    "LLM_MODEL": "gpt-4o-mini",
    "EVENT_LOG_ENABLED": True,
}
