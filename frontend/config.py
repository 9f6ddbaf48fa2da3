"""
Frontend settings loaded from environment variables at startup.
Import `settings` and use it instead of reading os.environ elsewhere.
Raises RuntimeError if any required variable is missing.
"""
import os

from dotenv import load_dotenv


def _required(key: str) -> str:
    value = os.environ.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise RuntimeError(f"Missing required environment variable: {key}")
    return value.strip()


def _optional_int(key: str, default: int) -> int:
    s = (os.environ.get(key) or "").strip()
    if not s:
        return default
    try:
        return int(s)
    except ValueError as e:
        raise RuntimeError(f"Environment variable {key} must be an integer: {s!r}") from e


class Settings:
    """All environment-derived configuration. Loaded once at import."""

    def __init__(self) -> None:
        load_dotenv()
        base = _required("API_BASE").rstrip("/")
        self.api_base = base
        # Stand-in for the identity provider's user id until a session exists
        self.default_user_id = (os.environ.get("DEFAULT_USER_ID") or "").strip()
        self.port = _optional_int("FRONTEND_PORT", 8080)


# Single instance loaded at import
settings = Settings()
