"""Webhook settings using Pydantic settings management."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .providers.generic import DEFAULT_SIGNATURE_HEADER, DEFAULT_TIMESTAMP_HEADER
from .signing import DEFAULT_TOLERANCE_SECONDS


class Settings(BaseSettings):
    """Environment configuration for the webhook endpoint."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    stripe_webhook_secret: Optional[SecretStr] = Field(
        default=None,
        description="Stripe endpoint signing secret (whsec_...).",
    )
    n8n_webhook_secret: Optional[SecretStr] = Field(
        default=None,
        description="Shared secret for n8n automation webhooks.",
    )

    webhook_tolerance_sec: int = Field(
        default=DEFAULT_TOLERANCE_SECONDS,
        ge=0,
        description="Accepted clock skew for signature timestamps, in seconds.",
    )

    n8n_signature_header: str = Field(default=DEFAULT_SIGNATURE_HEADER)
    n8n_timestamp_header: str = Field(default=DEFAULT_TIMESTAMP_HEADER)

    def get_secret(self, provider_id: str) -> str | None:
        """Return the configured secret for a provider, or None when unset."""
        secret = getattr(self, f"{provider_id}_webhook_secret", None)
        if not isinstance(secret, SecretStr):
            return None
        return secret.get_secret_value() or None


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


def reload_settings() -> Settings:
    """
    Drop the cached settings and read the environment again.

    Already-built applications keep their secrets; build a new one with
    ``create_app`` to pick up rotated values.
    """
    get_settings.cache_clear()
    return get_settings()
