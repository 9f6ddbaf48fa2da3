"""
Application settings loaded from environment variables.
Use `get_settings()` instead of reading os.environ elsewhere.
Raises RuntimeError if a required variable is missing or malformed.
"""
import os
from functools import lru_cache

from dotenv import load_dotenv

DEFAULT_REAL_MODEL_TAG = "gemini-2.0-flash-exp"


def _required(key: str) -> str:
    value = os.environ.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise RuntimeError(f"Missing required environment variable: {key}")
    return value.strip()


def _optional(key: str, default: str | None = None) -> str | None:
    value = os.environ.get(key)
    if value is None or not value.strip():
        return default
    return value.strip()


def _optional_float(key: str, default: float) -> float:
    s = _optional(key)
    if s is None:
        return default
    try:
        value = float(s)
    except ValueError as e:
        raise RuntimeError(f"Environment variable {key} must be a number: {s!r}") from e
    if value <= 0:
        raise RuntimeError(f"Environment variable {key} must be positive: {s!r}")
    return value


class Settings:
    """All environment-derived configuration."""

    def __init__(self) -> None:
        load_dotenv()
        # MongoDB: anon URI is required, service URI upgrades privilege when present
        self.mongodb_uri = _required("MONGODB_URI")
        self.mongodb_service_uri = _optional("MONGODB_SERVICE_URI")
        self.mongodb_database = _optional("MONGODB_DATABASE", "modelchat")

        # Google Gemini; without a key the designated model is simulated too
        self.google_ai_api_key = _optional("GOOGLE_AI_API_KEY")
        self.real_model_tag = _optional("REAL_MODEL_TAG", DEFAULT_REAL_MODEL_TAG)
        self.inference_timeout_seconds = _optional_float("INFERENCE_TIMEOUT_SECONDS", 30.0)

        self.log_level = _optional("LOG_LEVEL", "INFO").upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings instance shared by the process, built on first use."""
    return Settings()
