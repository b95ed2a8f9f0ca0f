"""Shared test fixtures."""

from collections.abc import Callable
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime

import pytest

from protein_buddy.adapters.supabase_identity import IdentityError, IdentityProvider
from protein_buddy.config import Settings
from protein_buddy.containers import AppContainer
from protein_buddy.domain.foods import Food, Measure, SearchHit
from protein_buddy.services.cache import InMemoryCache
from protein_buddy.services.ledger import Document, DocumentRepository, FoodLedger
from protein_buddy.services.nutrition import NutritionService
from protein_buddy.services.providers import FoodProvider

EMAIL = "buddy@example.com"
TOKEN = "valid-token"


def make_food(  # noqa: PLR0913
    name: str = "chicken breast",
    protein_per_gram: float = 0.2,
    brand_name: str = "unbranded",
    mass_grams: float = 150.0,
    multiplier: float = 1.0,
    consumption_time: str | None = None,
) -> Food:
    serving = Measure(expression="1 breast", mass_grams=mass_grams)
    measures = (serving, Measure(expression="100 g", mass_grams=100.0))
    return Food(
        name=name,
        protein_per_gram=protein_per_gram,
        brand_name=brand_name,
        measures=measures,
        selected_measure=serving,
        multiplier=multiplier,
        consumption_time=consumption_time,
    )


@dataclass
class InMemoryDocumentRepository(DocumentRepository):
    """In-memory document repository for tests."""

    documents: dict[str, Document] = field(default_factory=dict)
    fail_writes: bool = False
    writes: int = 0

    def get_document(self, email: str) -> Document:
        return deepcopy(self.documents.get(email, {}))

    def update_document(
        self, email: str, mutate: Callable[[Document], None]
    ) -> Document:
        if self.fail_writes:
            raise RuntimeError("store unavailable")
        document = deepcopy(self.documents.get(email, {}))
        mutate(document)
        self.documents[email] = document
        self.writes += 1
        return deepcopy(document)


@dataclass
class FakeIdentityProvider(IdentityProvider):
    """Identity lookup accepting a fixed set of tokens."""

    accounts: dict[str, str] = field(default_factory=lambda: {TOKEN: EMAIL})

    def email_for_token(self, access_token: str) -> str:
        email = self.accounts.get(access_token)
        if email is None:
            raise IdentityError("Invalid JWT")
        return email


@dataclass
class FakeFoodProvider(FoodProvider):
    """Provider double with canned hits, foods and barcodes."""

    hits: list[SearchHit] = field(default_factory=list)
    foods: dict[str, Food] = field(default_factory=dict)
    barcodes: dict[str, Food] = field(default_factory=dict)
    name: str = "fake"
    search_calls: int = 0
    resolve_calls: list[str] = field(default_factory=list)

    async def search(self, query: str, limit: int) -> list[SearchHit]:
        self.search_calls += 1
        return self.hits[:limit]

    async def resolve(self, hit: SearchHit) -> Food | None:
        self.resolve_calls.append(hit.identifier)
        return self.foods.get(hit.identifier)

    async def resolve_barcode(self, gtin13: str) -> Food | None:
        return self.barcodes.get(gtin13)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-header.service-payload.service-signature",
        fatsecret_client_id="fatsecret-id",
        fatsecret_client_secret="fatsecret-secret",
    )


@pytest.fixture
def repository() -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository()


@pytest.fixture
def ledger(repository: InMemoryDocumentRepository) -> FoodLedger:
    return FoodLedger(repository=repository, clock=lambda: datetime(2025, 1, 1, 8))


@pytest.fixture
def food_provider() -> FakeFoodProvider:
    chicken = make_food()
    return FakeFoodProvider(
        hits=[SearchHit(identifier="1", kind="generic", name="chicken breast")],
        foods={"1": chicken},
        barcodes={"4006381333931": make_food(name="protein bar", mass_grams=60.0)},
    )


@pytest.fixture
def container(
    settings: Settings,
    ledger: FoodLedger,
    food_provider: FakeFoodProvider,
) -> AppContainer:
    nutrition_service = NutritionService(
        provider=food_provider,
        cache=InMemoryCache(),
        retry_delay_seconds=0,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        nutrition_service=nutrition_service,
        ledger=ledger,
        identity=FakeIdentityProvider(),
        close_resources=close_resources,
    )
