"""Application configuration."""

import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from code_scanner.errors import ConfigurationError

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    backend: Literal["memory", "supabase"] = "memory"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    session_file: str = ".code_scanner_session.json"
    seed_demo_user: bool = True
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def require_supabase(settings: Settings) -> tuple[str, str]:
    """Return the Supabase URL and key, failing if either is missing."""
    url = (settings.supabase_url or "").strip()
    key = (settings.supabase_service_key or "").strip()
    if not url or not key:
        raise ConfigurationError(
            "SUPABASE_URL and SUPABASE_SERVICE_KEY are required for the "
            "supabase backend"
        )
    return url, key
