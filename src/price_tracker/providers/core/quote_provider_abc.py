"""Abstract base classes for price quote providers."""
import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from price_tracker.providers.core.backoff import BackoffExecutor
from price_tracker.providers.core.exceptions import (ProviderError,
                                                     RateLimitExceeded,
                                                     error_from_exception)
from price_tracker.providers.core.rate_limiter import RateLimiter
from price_tracker.providers.core.utils import complete_batch, unique_symbols
from price_tracker.schemas import Quote

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_S = 10.0
DEFAULT_MAX_CONCURRENT_REQUESTS = 5


class QuoteProviderABC(ABC):
    """Base interface for all price providers.

    Every outbound request goes through ``_call``: the rate limiter is asked
    for a slot inside the retried operation (so retries are budgeted too),
    raw exceptions are mapped to ProviderError, and the backoff executor
    decides whether to try again.

    Subclasses set ``provider_id`` and implement ``fetch_quote``. The default
    ``fetch_batch`` runs bounded parallel single fetches; providers with a
    batch endpoint override it.
    """

    provider_id: str = ""

    def __init__(
        self,
        *,
        limiter: RateLimiter | None = None,
        executor: BackoffExecutor | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        max_concurrent_requests: int = DEFAULT_MAX_CONCURRENT_REQUESTS,
    ) -> None:
        self._limiter = limiter
        self._executor = executor or BackoffExecutor()
        self._timeout_s = timeout_s
        self._semaphore = asyncio.Semaphore(max_concurrent_requests)

    @abstractmethod
    async def fetch_quote(self, symbol: str) -> Quote:
        """Fetch the current quote for a symbol.

        Args:
            symbol: Provider-agnostic ticker (e.g. "AAPL", "BTC", "XAU").

        Returns:
            A Quote tagged with this provider's id.

        Raises:
            ProviderError: On any failure, already mapped and retried.
        """

    async def fetch_batch(self, symbols: list[str]) -> dict[str, Quote | ProviderError]:
        """Fetch quotes for several symbols; one entry per requested symbol.

        A failing symbol yields its ProviderError instead of aborting the batch.
        """
        async def fetch_one(symbol: str) -> tuple[str, Quote | ProviderError]:
            async with self._semaphore:
                try:
                    return symbol, await self.fetch_quote(symbol)
                except Exception as exc:  # pylint: disable=broad-except
                    error = error_from_exception(exc, self.provider_id)
                    logger.warning("%s quote for %s failed: %s", self.provider_id, symbol, error)
                    return symbol, error

        wanted = unique_symbols(symbols)
        pairs = await asyncio.gather(*(fetch_one(s) for s in wanted))
        return complete_batch(wanted, dict(pairs), self.provider_id)

    def _acquire(self) -> None:
        """Take one call from the budget or raise RateLimitExceeded."""
        if self._limiter is not None and not self._limiter.try_acquire(self.provider_id):
            raise RateLimitExceeded("Call budget exhausted", provider_id=self.provider_id)

    async def _call(self, op: Callable[[], Awaitable[T]], *, description: str) -> T:
        """Run one outbound operation with budget, error mapping and retries."""
        async def attempt() -> T:
            self._acquire()
            try:
                return await op()
            except Exception as exc:  # pylint: disable=broad-except
                mapped = error_from_exception(exc, self.provider_id)
                if mapped is exc:
                    raise
                raise mapped from exc

        return await self._executor.execute(
            attempt, provider_id=self.provider_id, description=description
        )

    async def close(self) -> None:
        """Clean up resources (connections, clients).

        Override in subclasses if cleanup is needed.
        """

    async def __aenter__(self) -> "QuoteProviderABC":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.close()


class HttpQuoteProviderABC(QuoteProviderABC):
    """Quote provider talking to a JSON HTTP API through one httpx.AsyncClient."""

    BASE_URL: str = ""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Overrides ``BASE_URL``.
            headers: Extra request headers (API keys go here, never in logs).
            transport: Custom httpx transport, e.g. ``httpx.MockTransport`` in tests.
            **kwargs: Forwarded to QuoteProviderABC.
        """
        super().__init__(**kwargs)
        self._client = httpx.AsyncClient(
            base_url=base_url or self.BASE_URL,
            headers={"Accept": "application/json", **(headers or {})},
            timeout=self._timeout_s,
            transport=transport,
        )

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` and decode the JSON body; non-2xx raises HTTPStatusError."""
        response = await self._client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
