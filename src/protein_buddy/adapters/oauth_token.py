"""OAuth2 client-credentials token cache."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx

_logger = logging.getLogger(__name__)

EXPIRY_MARGIN_SECONDS = 60


class TokenError(RuntimeError):
    """Raised when the token endpoint does not return a usable token."""


@dataclass
class _CachedToken:
    value: str
    expires_at: float


@dataclass
class OAuthTokenProvider:
    """Fetches and caches a bearer token shared by all API calls.

    Refreshes are serialized by a lock, so concurrent callers arriving with an
    empty or expired cache wait on a single token request.
    """

    token_url: str
    client_id: str
    client_secret: str
    scope: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15.0
    clock: Callable[[], float] = time.monotonic
    _token: _CachedToken | None = field(default=None, init=False, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    async def get_token(self) -> str:
        """Return a valid access token, fetching one when needed."""
        cached = self._current()
        if cached is not None:
            return cached
        async with self._lock:
            cached = self._current()
            if cached is not None:
                return cached
            self._token = await self._fetch()
            return self._token.value

    def invalidate(self) -> None:
        """Drop the cached token so the next call fetches a fresh one."""
        self._token = None

    def _current(self) -> str | None:
        token = self._token
        if token is None or self.clock() >= token.expires_at:
            return None
        return token.value

    async def _fetch(self) -> _CachedToken:
        requested_at = self.clock()
        response = await self.http_client.post(
            self.token_url,
            data={
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "scope": self.scope,
            },
            timeout=self.timeout_seconds,
        )
        if response.status_code >= httpx.codes.BAD_REQUEST:
            raise TokenError(f"Token request failed with status {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise TokenError("Token response is not JSON") from exc
        if not isinstance(payload, dict):
            raise TokenError("Token response is not an object")
        access_token = payload.get("access_token")
        expires_in = payload.get("expires_in")
        if not isinstance(access_token, str) or not isinstance(expires_in, int):
            raise TokenError("Token response is missing access_token or expires_in")
        _logger.info("Fetched access token (expires_in=%s)", expires_in)
        return _CachedToken(
            value=access_token,
            expires_at=requested_at + expires_in - EXPIRY_MARGIN_SECONDS,
        )
