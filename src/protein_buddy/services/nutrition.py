"""Nutrition lookups with caching, retries and parallel resolution.

Every public coroutine here is a failure boundary: transport, decoding and
authentication errors are logged and turned into ``None`` or an empty list, so
callers only ever see "no result".
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

import httpx

from protein_buddy.domain.barcodes import normalize_gtin13
from protein_buddy.domain.foods import Food, SearchHit
from protein_buddy.services.cache import Cache
from protein_buddy.services.providers import FoodProvider

_logger = logging.getLogger(__name__)

T = TypeVar("T")

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


@dataclass
class NutritionService:
    """Provider-agnostic food search and resolution."""

    provider: FoodProvider
    cache: Cache
    max_results: int = 20
    search_ttl_seconds: int = 3600
    food_ttl_seconds: int = 86400
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3
    debug: bool = False

    async def search(self, query: str) -> list[Food]:
        """Search and resolve foods, keeping the provider's relevance order."""
        hits = await self.search_hits(query)
        if not hits:
            return []
        return await self.resolve_many(hits)

    async def search_hits(self, query: str) -> list[SearchHit]:
        """Return lightweight search results for a query."""
        cleaned = query.strip()
        if not cleaned:
            return []
        cache_key = f"{self.provider.name}:search:{cleaned.lower()}:{self.max_results}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        try:
            hits = await self._call_with_retry(
                lambda: self.provider.search(cleaned, self.max_results),
                action="search",
            )
        except Exception as exc:
            _log_failure("search", exc)
            return []
        self.cache.set(cache_key, hits, ttl_seconds=self.search_ttl_seconds)
        if self.debug:
            _logger.info("Nutrition search: query=%s hits=%s", cleaned, len(hits))
        return hits

    async def resolve(self, hit: SearchHit) -> Food | None:
        """Return the canonical food for one search hit, or None."""
        cache_key = f"{self.provider.name}:food:{hit.kind}:{hit.identifier}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, Food):
            return cached

        try:
            food = await self._call_with_retry(
                lambda: self.provider.resolve(hit),
                action=f"resolve:{hit.identifier}",
            )
        except Exception as exc:
            _log_failure(f"resolve:{hit.identifier}", exc)
            return None
        if food is not None:
            self.cache.set(cache_key, food, ttl_seconds=self.food_ttl_seconds)
        return food

    async def resolve_many(self, hits: list[SearchHit]) -> list[Food]:
        """Resolve hits concurrently and return foods in hit order.

        Results are gathered by index, so completion order never affects the
        output; hits that fail to resolve are dropped.
        """
        limit = asyncio.Semaphore(max(1, min(len(hits), self.max_results)))

        async def bounded(hit: SearchHit) -> Food | None:
            async with limit:
                return await self.resolve(hit)

        resolved = await asyncio.gather(*(bounded(hit) for hit in hits))
        return [food for food in resolved if food is not None]

    async def resolve_barcode(self, barcode: str) -> Food | None:
        """Return the food behind a scanned UPC/EAN barcode, or None."""
        gtin13 = normalize_gtin13(barcode)
        if gtin13 is None:
            _logger.info("Rejected malformed barcode %r", barcode)
            return None
        cache_key = f"{self.provider.name}:barcode:{gtin13}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, Food):
            return cached

        try:
            food = await self._call_with_retry(
                lambda: self.provider.resolve_barcode(gtin13),
                action=f"barcode:{gtin13}",
            )
        except Exception as exc:
            _log_failure(f"barcode:{gtin13}", exc)
            return None
        if food is not None:
            self.cache.set(cache_key, food, ttl_seconds=self.food_ttl_seconds)
        return food

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[T]]", *, action: str
    ) -> T:
        """Call an async function, retrying transient failures."""
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                if attempt > self.retry_attempts or not _is_transient(exc):
                    raise
                if self.debug:
                    _logger.warning(
                        "Nutrition %s failed (attempt %s/%s, status=%s): %s",
                        action,
                        attempt,
                        self.retry_attempts + 1,
                        _status_code_from_exception(exc),
                        exc,
                    )
                await asyncio.sleep(self.retry_delay_seconds)


def _is_transient(exc: Exception) -> bool:
    """Return True for network errors, expired tokens and server-side failures."""
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        return (
            status_code == httpx.codes.UNAUTHORIZED
            or status_code >= httpx.codes.INTERNAL_SERVER_ERROR
        )
    return isinstance(exc, httpx.TransportError)


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"


def _log_failure(action: str, exc: Exception) -> None:
    _logger.warning(
        "Nutrition %s failed (status=%s): %s",
        action,
        _status_code_from_exception(exc),
        exc,
    )
