"""TTL cache for provider lookups."""

from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Cache(Protocol):
    """Cache interface for simple key-value data."""

    def get(self, key: str) -> object | None:
        """Return a cached value if present and not expired."""

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL in seconds."""


@dataclass
class _CacheEntry:
    value: object
    expires_at: datetime


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class InMemoryCache(Cache):
    """Process-local cache bounded by entry count, oldest insert evicted first."""

    def __init__(
        self, max_entries: int = 1024, now: Callable[[], datetime] = _utc_now
    ) -> None:
        self._entries: OrderedDict[str, _CacheEntry] = OrderedDict()
        self._max_entries = max_entries
        self._now = now

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> object | None:
        """Return a cached value if it hasn't expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._now() >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL."""
        self._entries.pop(key, None)
        self._entries[key] = _CacheEntry(
            value=value, expires_at=self._now() + timedelta(seconds=ttl_seconds)
        )
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
