"""Test doubles shared by the test modules."""
from datetime import datetime, timedelta

from price_tracker.db import SqlModelStore
from price_tracker.exceptions import PersistenceError
from price_tracker.providers.core import (BackoffExecutor, QuoteProviderABC,
                                          RetryConfig, UnknownSymbolError)
from price_tracker.schemas import PriceChangeEvent, Quote

NOW = datetime(2025, 3, 10, 12, 0, 0)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingSleep:
    """Stand-in for asyncio.sleep that records the requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FailingStore(SqlModelStore):
    """Store whose reads fail for selected users."""

    def __init__(self, engine, broken_users):
        super().__init__(engine)
        self.broken_users = set(broken_users)

    def filter(self, model, predicate=None, **equals):
        if equals.get("user_id") in self.broken_users:
            raise PersistenceError("database unavailable")
        return super().filter(model, predicate, **equals)


class FakeProvider(QuoteProviderABC):
    """Provider answering from a price table, with scripted per-symbol errors."""

    def __init__(
        self,
        provider_id: str,
        prices: dict[str, float] | None = None,
        errors: dict[str, Exception] | None = None,
        fail_with: Exception | None = None,
    ) -> None:
        super().__init__(executor=BackoffExecutor(RetryConfig(max_retries=0)))
        self.provider_id = provider_id
        self.prices = prices or {}
        self.errors = errors or {}
        self.fail_with = fail_with
        self.batches: list[list[str]] = []
        self.closed = False

    async def fetch_quote(self, symbol: str) -> Quote:
        if symbol in self.errors:
            raise self.errors[symbol]
        if symbol not in self.prices:
            raise UnknownSymbolError(f"Unknown symbol {symbol}", provider_id=self.provider_id)
        return Quote(symbol=symbol, price=self.prices[symbol], provider_id=self.provider_id)

    async def fetch_batch(self, symbols):
        self.batches.append(list(symbols))
        if self.fail_with is not None:
            raise self.fail_with
        return await super().fetch_batch(symbols)

    async def close(self) -> None:
        self.closed = True


class RecordingNotifier:
    def __init__(self, deliver: bool = True, fail: bool = False) -> None:
        self.deliver = deliver
        self.fail = fail
        self.sent: list[tuple[int, str, str, str]] = []

    async def send(self, user_id: int, title: str, body: str, correlation_id: str) -> bool:
        if self.fail:
            raise ConnectionError("push channel down")
        self.sent.append((user_id, title, body, correlation_id))
        return self.deliver


class RecordingPublisher:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.events: list[PriceChangeEvent] = []

    async def publish(self, event: PriceChangeEvent) -> None:
        if self.fail:
            raise ConnectionError("broadcast channel down")
        self.events.append(event)
