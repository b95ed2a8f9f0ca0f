"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

PROVIDERS = frozenset({"fatsecret", "nutritionix"})


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    nutrition_provider: str = "fatsecret"
    fatsecret_client_id: str | None = None
    fatsecret_client_secret: str | None = None
    fatsecret_scope: str = "basic barcode"
    fatsecret_token_url: str = "https://oauth.fatsecret.com/connect/token"
    fatsecret_base_url: str = "https://platform.fatsecret.com/rest"
    nutritionix_app_id: str | None = None
    nutritionix_app_key: str | None = None
    nutritionix_remote_user_id: str = "0"
    nutritionix_base_url: str = "https://trackapi.nutritionix.com/v2"
    search_max_results: int = 20
    request_timeout_seconds: float = 15.0
    timezone: str = "UTC"
    debug: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_provider(raw: str) -> str:
    """Normalize the configured nutrition provider name."""
    cleaned = raw.strip().lower()
    if cleaned not in PROVIDERS:
        raise ValueError(
            f"Unknown nutrition provider {raw!r}; expected one of {sorted(PROVIDERS)}"
        )
    return cleaned
