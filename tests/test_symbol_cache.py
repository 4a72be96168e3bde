"""Tests for the time-limited ticker mapping cache."""
import asyncio

from price_tracker.providers.core import ParseError, SymbolMapCache
from price_tracker.providers.core.utils import complete_batch, round_price
from price_tracker.schemas import Quote


class CountingLoader:
    def __init__(self, mapping):
        self.mapping = mapping
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(0)
        return dict(self.mapping)


class TestSymbolMapCache:
    async def test_loads_lazily_and_resolves_case_insensitively(self, clock):
        loader = CountingLoader({"btc": "bitcoin"})
        cache = SymbolMapCache(loader, clock=clock)

        assert loader.calls == 0
        assert await cache.resolve("BTC") == "bitcoin"
        assert await cache.resolve("btc") == "bitcoin"
        assert loader.calls == 1

    async def test_miss_does_not_reload(self, clock):
        loader = CountingLoader({"BTC": "bitcoin"})
        cache = SymbolMapCache(loader, clock=clock)

        assert await cache.resolve("NOPE") is None
        assert await cache.resolve("NOPE") is None
        assert loader.calls == 1

    async def test_reloads_after_ttl(self, clock):
        loader = CountingLoader({"BTC": "bitcoin"})
        cache = SymbolMapCache(loader, clock=clock)
        await cache.resolve("BTC")

        clock.advance(hours=23, minutes=59)
        await cache.resolve("BTC")
        assert loader.calls == 1

        clock.advance(minutes=1)
        await cache.resolve("BTC")
        assert loader.calls == 2

    async def test_concurrent_lookups_share_one_load(self, clock):
        loader = CountingLoader({"BTC": "bitcoin", "ETH": "ethereum"})
        cache = SymbolMapCache(loader, clock=clock)

        results = await asyncio.gather(cache.resolve("BTC"), cache.resolve("ETH"))

        assert results == ["bitcoin", "ethereum"]
        assert loader.calls == 1

    async def test_clear_forces_reload(self, clock):
        loader = CountingLoader({"BTC": "bitcoin"})
        cache = SymbolMapCache(loader, clock=clock)
        await cache.resolve("BTC")

        cache.clear()

        assert cache.is_stale
        await cache.resolve_many(["BTC"])
        assert loader.calls == 2


def test_complete_batch_fills_gaps():
    quote = Quote(symbol="AAPL", price=1.0, provider_id="polygon")

    results = complete_batch(["AAPL", "MSFT"], {"AAPL": quote, "EXTRA": quote}, "polygon")

    assert list(results) == ["AAPL", "MSFT"]
    assert isinstance(results["MSFT"], ParseError)


def test_round_price():
    assert round_price(None) is None
    assert round_price(1.123456789) == 1.12345679
