"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from supabase import create_client

from protein_buddy.adapters.fatsecret_client import HttpxFatSecretClient
from protein_buddy.adapters.nutritionix_client import HttpxNutritionixClient
from protein_buddy.adapters.supabase_document_repository import (
    SupabaseDocumentRepository,
)
from protein_buddy.adapters.supabase_identity import (
    IdentityProvider,
    SupabaseIdentityProvider,
)
from protein_buddy.config import Settings, parse_provider
from protein_buddy.services.cache import InMemoryCache
from protein_buddy.services.ledger import FoodLedger
from protein_buddy.services.nutrition import NutritionService
from protein_buddy.services.providers import (
    FatSecretProvider,
    FoodProvider,
    NutritionixProvider,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    nutrition_service: NutritionService
    ledger: FoodLedger
    identity: IdentityProvider
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    provider, close_provider = _build_provider(resolved_settings)
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    nutrition_service = NutritionService(
        provider=provider,
        cache=InMemoryCache(),
        max_results=resolved_settings.search_max_results,
        debug=resolved_settings.debug,
    )
    timezone = ZoneInfo(resolved_settings.timezone)
    ledger = FoodLedger(
        repository=SupabaseDocumentRepository(supabase_client),
        clock=lambda: datetime.now(tz=timezone),
    )

    async def close_resources() -> None:
        await close_provider()

    return AppContainer(
        settings=resolved_settings,
        nutrition_service=nutrition_service,
        ledger=ledger,
        identity=SupabaseIdentityProvider(supabase_client),
        close_resources=close_resources,
    )


def _build_provider(
    settings: Settings,
) -> tuple[FoodProvider, Callable[[], Awaitable[None]]]:
    provider_name = parse_provider(settings.nutrition_provider)
    if provider_name == "nutritionix":
        if not settings.nutritionix_app_id or not settings.nutritionix_app_key:
            raise RuntimeError("NUTRITIONIX_APP_ID and NUTRITIONIX_APP_KEY must be set")
        nutritionix_client = HttpxNutritionixClient.create(
            app_id=settings.nutritionix_app_id,
            app_key=settings.nutritionix_app_key,
            remote_user_id=settings.nutritionix_remote_user_id,
            base_url=settings.nutritionix_base_url,
            timeout_seconds=settings.request_timeout_seconds,
        )
        return NutritionixProvider(nutritionix_client), nutritionix_client.close

    if not settings.fatsecret_client_id or not settings.fatsecret_client_secret:
        raise RuntimeError(
            "FATSECRET_CLIENT_ID and FATSECRET_CLIENT_SECRET must be set"
        )
    fatsecret_client = HttpxFatSecretClient.create(
        client_id=settings.fatsecret_client_id,
        client_secret=settings.fatsecret_client_secret,
        scope=settings.fatsecret_scope,
        token_url=settings.fatsecret_token_url,
        base_url=settings.fatsecret_base_url,
        timeout_seconds=settings.request_timeout_seconds,
    )
    return FatSecretProvider(fatsecret_client), fatsecret_client.close
