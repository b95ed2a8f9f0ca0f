"""Nutritionix API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class NutritionixClient(Protocol):
    """Interface for Nutritionix API interactions."""

    async def search_instant(self, query: str) -> dict[str, object]:
        """Run an instant search and return raw API data."""

    async def natural_nutrients(self, query: str) -> dict[str, object]:
        """Resolve a common food name and return raw API data."""

    async def search_item(
        self, *, nix_item_id: str | None = None, upc: str | None = None
    ) -> dict[str, object]:
        """Fetch a branded item by id or UPC and return raw API data."""


@dataclass
class HttpxNutritionixClient(NutritionixClient):
    """HTTPX-backed Nutritionix client using API-key headers."""

    app_id: str
    app_key: str
    remote_user_id: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15.0

    @classmethod
    def create(
        cls,
        *,
        app_id: str,
        app_key: str,
        remote_user_id: str,
        base_url: str,
        timeout_seconds: float = 15.0,
    ) -> "HttpxNutritionixClient":
        """Create a Nutritionix client with a managed httpx session."""
        return cls(
            app_id=app_id,
            app_key=app_key,
            remote_user_id=remote_user_id,
            base_url=base_url,
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def search_instant(self, query: str) -> dict[str, object]:
        """Run an instant search over common and branded foods."""
        response = await self.http_client.post(
            f"{self.base_url}/search/instant",
            json={"query": query},
            headers=self._headers(),
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def natural_nutrients(self, query: str) -> dict[str, object]:
        """Resolve nutrients for a common food name."""
        response = await self.http_client.post(
            f"{self.base_url}/natural/nutrients",
            json={"query": query},
            headers=self._headers(),
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def search_item(
        self, *, nix_item_id: str | None = None, upc: str | None = None
    ) -> dict[str, object]:
        """Fetch a branded item by Nutritionix id or UPC."""
        params = {"nix_item_id": nix_item_id} if nix_item_id else {"upc": upc}
        response = await self.http_client.get(
            f"{self.base_url}/search/item",
            params=params,
            headers=self._headers(),
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "x-app-id": self.app_id,
            "x-app-key": self.app_key,
            "x-remote-user-id": self.remote_user_id,
        }
