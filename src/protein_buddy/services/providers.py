"""Nutrition provider strategies over the raw API clients."""

from dataclasses import dataclass
from typing import Protocol

from protein_buddy.adapters.fatsecret_client import FatSecretClient
from protein_buddy.adapters.nutritionix_client import NutritionixClient
from protein_buddy.domain.foods import Food, SearchHit
from protein_buddy.services.parsing import (
    parse_fatsecret_food,
    parse_fatsecret_search,
    parse_nutritionix_food,
    parse_nutritionix_search,
)


class FoodProvider(Protocol):
    """A nutrition data source able to search and resolve foods."""

    name: str

    async def search(self, query: str, limit: int) -> list[SearchHit]:
        """Return relevance-ordered hits for a query."""

    async def resolve(self, hit: SearchHit) -> Food | None:
        """Return the canonical food for a search hit."""

    async def resolve_barcode(self, gtin13: str) -> Food | None:
        """Return the canonical food for a GTIN-13 barcode."""


@dataclass
class FatSecretProvider(FoodProvider):
    """FatSecret-backed provider (OAuth2 bearer token)."""

    client: FatSecretClient
    name: str = "fatsecret"

    async def search(self, query: str, limit: int) -> list[SearchHit]:
        """Search foods by expression."""
        payload = await self.client.search_foods(query, max_results=limit)
        return parse_fatsecret_search(payload)[:limit]

    async def resolve(self, hit: SearchHit) -> Food | None:
        """Fetch and parse the detail record of a hit."""
        payload = await self.client.get_food(hit.identifier)
        return parse_fatsecret_food(payload)

    async def resolve_barcode(self, gtin13: str) -> Food | None:
        """Fetch and parse the record behind a barcode."""
        payload = await self.client.find_by_barcode(gtin13)
        return parse_fatsecret_food(payload)


@dataclass
class NutritionixProvider(FoodProvider):
    """Nutritionix-backed provider (API-key headers)."""

    client: NutritionixClient
    name: str = "nutritionix"

    async def search(self, query: str, limit: int) -> list[SearchHit]:
        """Run an instant search; common hits come before branded ones."""
        payload = await self.client.search_instant(query)
        return parse_nutritionix_search(payload)[:limit]

    async def resolve(self, hit: SearchHit) -> Food | None:
        """Resolve common hits by name and branded hits by item id."""
        if hit.kind == "branded":
            payload = await self.client.search_item(nix_item_id=hit.identifier)
        else:
            payload = await self.client.natural_nutrients(hit.identifier)
        return parse_nutritionix_food(payload)

    async def resolve_barcode(self, gtin13: str) -> Food | None:
        """Look up a branded item by UPC."""
        payload = await self.client.search_item(upc=gtin13)
        return parse_nutritionix_food(payload)
