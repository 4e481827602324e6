"""
Configuration and settings for the food sharing backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_ORIGINS = [
    "https://food-sharing-2fa12.web.app",
    "http://localhost:3000",
    "http://localhost:5173",
]


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Database (Postgres expected)
    database_url: Optional[str] = Field(default=None)

    # Firebase Authentication
    firebase_service_account_key: Optional[str] = Field(default=None)
    firebase_project_id: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "FOODSHARE_USE_IN_MEMORY_BACKENDS", "use_in_memory_backends"
        ),
    )
    # Maps bearer token -> {"uid": ..., "email": ...}; bypasses Firebase.
    dev_identity_tokens: dict[str, dict] = Field(
        default_factory=dict,
        validation_alias=AliasChoices(
            "FOODSHARE_DEV_IDENTITY_TOKENS", "dev_identity_tokens"
        ),
    )

    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS)
    )

    featured_limit: int = Field(default=6, ge=1)
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
