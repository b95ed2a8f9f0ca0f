"""FatSecret Platform API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from protein_buddy.adapters.oauth_token import OAuthTokenProvider


class FatSecretClient(Protocol):
    """Interface for FatSecret API interactions."""

    async def search_foods(
        self, query: str, max_results: int = 20
    ) -> dict[str, object]:
        """Search foods by expression and return raw API data."""

    async def get_food(self, food_id: str) -> dict[str, object]:
        """Fetch a food record by id and return raw API data."""

    async def find_by_barcode(self, barcode: str) -> dict[str, object]:
        """Fetch a food record by GTIN-13 barcode and return raw API data."""


@dataclass
class HttpxFatSecretClient(FatSecretClient):
    """HTTPX-backed FatSecret client authenticated with a bearer token."""

    base_url: str
    token_provider: OAuthTokenProvider
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15.0

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        *,
        client_id: str,
        client_secret: str,
        scope: str,
        token_url: str,
        base_url: str,
        timeout_seconds: float = 15.0,
    ) -> "HttpxFatSecretClient":
        """Create a FatSecret client with a managed httpx session."""
        http_client = httpx.AsyncClient()
        token_provider = OAuthTokenProvider(
            token_url=token_url,
            client_id=client_id,
            client_secret=client_secret,
            scope=scope,
            http_client=http_client,
            timeout_seconds=timeout_seconds,
        )
        return cls(
            base_url=base_url,
            token_provider=token_provider,
            http_client=http_client,
            timeout_seconds=timeout_seconds,
        )

    async def search_foods(
        self, query: str, max_results: int = 20
    ) -> dict[str, object]:
        """Search foods by expression."""
        return await self._get(
            "/foods/search/v1",
            {"search_expression": query, "max_results": max_results},
        )

    async def get_food(self, food_id: str) -> dict[str, object]:
        """Fetch a food record by id."""
        return await self._get("/food/v4", {"food_id": food_id})

    async def find_by_barcode(self, barcode: str) -> dict[str, object]:
        """Fetch a food record by barcode."""
        return await self._get("/food/barcode/find-by-id/v2", {"barcode": barcode})

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _get(self, path: str, params: dict[str, object]) -> dict[str, object]:
        token = await self.token_provider.get_token()
        response = await self.http_client.get(
            f"{self.base_url}{path}",
            params={**params, "format": "json"},
            headers={"Authorization": f"Bearer {token}"},
            timeout=self.timeout_seconds,
        )
        if response.status_code == httpx.codes.UNAUTHORIZED:
            self.token_provider.invalidate()
        response.raise_for_status()
        return response.json()
