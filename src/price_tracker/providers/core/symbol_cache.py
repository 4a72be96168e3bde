"""Time-limited cache for provider symbol mappings (e.g. ticker -> coin id)."""
import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from price_tracker.utils import utcnow

DEFAULT_TTL = timedelta(hours=24)


class SymbolMapCache:
    """Ticker-to-provider-id mapping, loaded lazily and reloaded after ``ttl``.

    The loader is only called when the cache is empty or expired, never on a
    plain miss, so unknown tickers do not cost an extra request each.
    """

    def __init__(
        self,
        loader: Callable[[], Awaitable[dict[str, str]]],
        *,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._loader = loader
        self._ttl = ttl
        self._clock = clock
        self._mapping: dict[str, str] = {}
        self._loaded_at: datetime | None = None
        self._lock = asyncio.Lock()

    @property
    def is_stale(self) -> bool:
        if self._loaded_at is None or not self._mapping:
            return True
        return self._clock() - self._loaded_at >= self._ttl

    async def resolve(self, key: str) -> str | None:
        """Provider id for ``key`` (case-insensitive), or None when unknown."""
        await self.ensure_loaded()
        return self._mapping.get(key.upper())

    async def resolve_many(self, keys: list[str]) -> dict[str, str | None]:
        await self.ensure_loaded()
        return {key: self._mapping.get(key.upper()) for key in keys}

    async def ensure_loaded(self) -> None:
        if not self.is_stale:
            return
        async with self._lock:
            if not self.is_stale:
                return
            mapping = await self._loader()
            self._mapping = {k.upper(): v for k, v in mapping.items()}
            self._loaded_at = self._clock()

    def clear(self) -> None:
        """Drop the cached mapping; the next lookup reloads it."""
        self._mapping.clear()
        self._loaded_at = None
