"""Tests for nutrition service."""

import asyncio
from dataclasses import dataclass, field

import httpx
import pytest

from protein_buddy.adapters.fatsecret_client import FatSecretClient
from protein_buddy.domain.foods import Food, SearchHit
from protein_buddy.services.cache import InMemoryCache
from protein_buddy.services.nutrition import NutritionService
from protein_buddy.services.providers import FatSecretProvider, FoodProvider
from tests.conftest import FakeFoodProvider, make_food


def _status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.test/food")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError("error", request=request, response=response)


@dataclass
class DelayedProvider(FoodProvider):
    """Resolves earlier hits more slowly than later ones."""

    hits: list[SearchHit]
    name: str = "delayed"
    completed: list[str] = field(default_factory=list)

    async def search(self, query: str, limit: int) -> list[SearchHit]:
        return self.hits[:limit]

    async def resolve(self, hit: SearchHit) -> Food | None:
        position = int(hit.identifier)
        await asyncio.sleep(0.01 * (len(self.hits) - position))
        self.completed.append(hit.identifier)
        return make_food(name=f"food {hit.identifier}")

    async def resolve_barcode(self, gtin13: str) -> Food | None:
        return None


@dataclass
class FlakyProvider(FoodProvider):
    """Raises the queued errors before answering."""

    errors: list[Exception]
    name: str = "flaky"
    calls: int = 0

    async def search(self, query: str, limit: int) -> list[SearchHit]:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return [SearchHit(identifier="1", kind="generic", name=query)]

    async def resolve(self, hit: SearchHit) -> Food | None:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return make_food()

    async def resolve_barcode(self, gtin13: str) -> Food | None:
        return await self.resolve(SearchHit(identifier=gtin13, kind="barcode"))


@dataclass
class ScriptedFatSecretClient(FatSecretClient):
    """Answers searches with queued payloads."""

    payloads: list[dict[str, object]]
    search_calls: int = 0

    async def search_foods(
        self, query: str, max_results: int = 20
    ) -> dict[str, object]:
        self.search_calls += 1
        return self.payloads.pop(0)

    async def get_food(self, food_id: str) -> dict[str, object]:
        return {
            "food": {
                "food_id": food_id,
                "food_name": "Egg",
                "servings": {
                    "serving": {
                        "measurement_description": "large",
                        "number_of_units": "1",
                        "metric_serving_amount": "50",
                        "protein": "6.5",
                    }
                },
            }
        }

    async def find_by_barcode(self, barcode: str) -> dict[str, object]:
        return {"error": {"code": 211}}


def _service(provider: FoodProvider) -> NutritionService:
    return NutritionService(
        provider=provider, cache=InMemoryCache(), retry_delay_seconds=0
    )


def test_search_uses_cache(food_provider: FakeFoodProvider) -> None:
    service = _service(food_provider)

    results = asyncio.run(service.search("Chicken"))
    cached = asyncio.run(service.search("chicken "))

    assert [food.name for food in results] == ["chicken breast"]
    assert cached == results
    assert food_provider.search_calls == 1
    assert food_provider.resolve_calls == ["1"]


def test_blank_query_skips_provider(food_provider: FakeFoodProvider) -> None:
    service = _service(food_provider)

    assert asyncio.run(service.search("   ")) == []
    assert food_provider.search_calls == 0


def test_resolve_many_keeps_hit_order_when_completion_is_reversed() -> None:
    hits = [SearchHit(identifier=str(index), kind="generic") for index in range(5)]
    provider = DelayedProvider(hits=hits)
    service = _service(provider)

    foods = asyncio.run(service.search("anything"))

    assert provider.completed == ["4", "3", "2", "1", "0"]
    assert [food.name for food in foods] == [f"food {index}" for index in range(5)]


def test_unresolvable_hits_are_dropped(food_provider: FakeFoodProvider) -> None:
    food_provider.hits = [
        SearchHit(identifier="missing", kind="generic"),
        SearchHit(identifier="1", kind="generic"),
    ]
    service = _service(food_provider)

    foods = asyncio.run(service.search("chicken"))

    assert [food.name for food in foods] == ["chicken breast"]


def test_failed_lookups_are_not_cached(food_provider: FakeFoodProvider) -> None:
    service = _service(food_provider)
    hit = SearchHit(identifier="2", kind="generic")

    assert asyncio.run(service.resolve(hit)) is None
    food_provider.foods["2"] = make_food(name="tuna")

    resolved = asyncio.run(service.resolve(hit))

    assert resolved is not None
    assert resolved.name == "tuna"


def test_provider_error_body_is_not_cached_as_empty_result() -> None:
    client = ScriptedFatSecretClient(
        payloads=[
            {"error": {"code": 13, "message": "Invalid access token"}},
            {"foods": {"food": {"food_id": "1", "food_name": "Egg"}}},
        ]
    )
    service = _service(FatSecretProvider(client))

    first = asyncio.run(service.search("egg"))
    second = asyncio.run(service.search("egg"))

    assert first == []
    assert [food.name for food in second] == ["egg"]
    assert client.search_calls == 2


def test_genuine_empty_search_is_cached() -> None:
    client = ScriptedFatSecretClient(payloads=[{"foods": {"total_results": "0"}}])
    service = _service(FatSecretProvider(client))

    assert asyncio.run(service.search_hits("zzz")) == []
    assert asyncio.run(service.search_hits("zzz")) == []
    assert client.search_calls == 1


def test_transport_errors_collapse_to_empty_results() -> None:
    provider = FlakyProvider(
        errors=[httpx.ConnectError("down"), httpx.ConnectError("still down")]
    )
    service = _service(provider)

    assert asyncio.run(service.search("chicken")) == []
    assert provider.calls == 2


def test_transient_failure_is_retried_once() -> None:
    provider = FlakyProvider(errors=[_status_error(503)])
    service = _service(provider)

    foods = asyncio.run(service.search("chicken"))

    assert [food.name for food in foods] == ["chicken breast"]
    assert provider.calls == 3


def test_unauthorized_is_retried_with_a_fresh_token() -> None:
    provider = FlakyProvider(errors=[_status_error(401)])
    service = _service(provider)

    hits = asyncio.run(service.search_hits("chicken"))

    assert len(hits) == 1
    assert provider.calls == 2


def test_client_errors_are_not_retried() -> None:
    provider = FlakyProvider(errors=[_status_error(404)])
    service = _service(provider)

    assert asyncio.run(service.search_hits("chicken")) == []
    assert provider.calls == 1


def test_decode_errors_collapse_to_none() -> None:
    provider = FlakyProvider(errors=[ValueError("bad json")])
    service = _service(provider)

    assert asyncio.run(service.resolve(SearchHit(identifier="1", kind="x"))) is None
    assert provider.calls == 1


def test_barcode_is_normalized_before_lookup(food_provider: FakeFoodProvider) -> None:
    service = _service(food_provider)

    food = asyncio.run(service.resolve_barcode("04006381333931"))

    assert food is not None
    assert food.name == "protein bar"


def test_malformed_barcode_returns_none() -> None:
    provider = FlakyProvider(errors=[])
    service = _service(provider)

    assert asyncio.run(service.resolve_barcode("4006381333932")) is None
    assert provider.calls == 0


def test_unknown_barcode_returns_none(food_provider: FakeFoodProvider) -> None:
    service = _service(food_provider)

    assert asyncio.run(service.resolve_barcode("036000291452")) is None


def test_cancellation_propagates() -> None:
    hits = [SearchHit(identifier=str(index), kind="generic") for index in range(3)]
    service = _service(DelayedProvider(hits=hits))

    async def run() -> None:
        task = asyncio.create_task(service.search("slow"))
        await asyncio.sleep(0)
        task.cancel()
        await task

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(run())
