"""
Application configuration using Pydantic Settings.
All environment-specific values are centralized here.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── App ──────────────────────────────────────────────
    app_name: str = "Regulatory Requirement Intake"
    debug: bool = False

    # ── Marketplace backend ──────────────────────────────
    api_base_url: str = "http://localhost:3003/api"
    api_token: str = ""  # fallback when the caller supplies none
    request_timeout_seconds: float = 30.0

    # ── Wizard sessions ──────────────────────────────────
    session_ttl_minutes: int = 60

    # ── Logging ──────────────────────────────────────────
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings (singleton)."""
    return Settings()
