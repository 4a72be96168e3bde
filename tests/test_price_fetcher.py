"""Tests for the per-user batch price refresh."""
import asyncio

import pytest

from fakes import NOW, FailingStore, FakeProvider, RecordingPublisher
from price_tracker.db import Asset, AssetClass, PriceHistory
from price_tracker.providers.core import (NetworkError, RateLimitExceeded,
                                          RetriesExhaustedError)
from price_tracker.services import BatchPriceFetcher, FallbackCoordinator
from price_tracker.services.price_fetcher import price_change_pct


class BlockingProvider(FakeProvider):
    """Provider whose batches hang until released."""

    def __init__(self, provider_id, prices):
        super().__init__(provider_id, prices)
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def fetch_batch(self, symbols):
        self.started.set()
        await self.release.wait()
        return await super().fetch_batch(symbols)


def add_asset(store, user_id, symbol, asset_class=AssetClass.EQUITY, current_price=None):
    return store.append(
        Asset(
            user_id=user_id,
            asset_class=asset_class,
            symbol=symbol,
            name=symbol or "Holding",
            purchase_price=100.0,
            current_price=current_price,
        )
    )


@pytest.fixture
def equities():
    return FakeProvider(
        "polygon",
        {"AAPL": 200.0, "MSFT": 400.0},
        errors={"IBM": RateLimitExceeded("budget", provider_id="polygon")},
    )


@pytest.fixture
def backup():
    return FakeProvider("alpha_vantage", {"IBM": 250.0})


@pytest.fixture
def crypto():
    return FakeProvider("coingecko", {"BTC": 65000.0})


@pytest.fixture
def coordinator(equities, backup, crypto):
    return FallbackCoordinator(
        {AssetClass.EQUITY: [equities, backup], AssetClass.CRYPTO: [crypto]}
    )


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def fetcher(store, coordinator, publisher, clock):
    return BatchPriceFetcher(store, coordinator, publisher, clock)


class TestBatchPriceFetcher:
    async def test_persists_prices_and_history(self, store, fetcher):
        aapl = add_asset(store, 1, "AAPL", current_price=180.0)
        btc = add_asset(store, 1, "BTC", AssetClass.CRYPTO)

        result = await fetcher.update_user(1)

        assert result.assets_updated == 2
        assert result.assets_failed == 0
        assert result.history_stored == 2
        saved = store.get(Asset, aapl.id)
        assert saved.current_price == 200.0
        assert saved.last_price_update == NOW
        assert store.get(Asset, btc.id).current_price == 65000.0

        [history] = store.filter(PriceHistory, asset_id=aapl.id)
        assert history.price == 200.0
        assert history.observed_at == NOW
        assert history.source_provider_id == "polygon"
        assert history.degraded is False

    async def test_one_event_lists_every_update(self, store, fetcher, publisher):
        add_asset(store, 1, "AAPL", current_price=160.0)
        add_asset(store, 1, "BTC", AssetClass.CRYPTO)

        result = await fetcher.update_user(1)

        assert result.event_published is True
        [event] = publisher.events
        assert event.user_id == 1
        assert event.timestamp == NOW
        changes = {u.symbol: u for u in event.updates}
        assert changes["AAPL"].old_price == 160.0
        assert changes["AAPL"].price_change_pct == pytest.approx(25.0)
        assert changes["BTC"].old_price is None
        assert changes["BTC"].price_change_pct == 0.0

    async def test_degraded_source_is_recorded(self, store, fetcher, publisher):
        ibm = add_asset(store, 1, "IBM")

        await fetcher.update_user(1)

        [history] = store.filter(PriceHistory, asset_id=ibm.id)
        assert history.source_provider_id == "alpha_vantage"
        assert history.degraded is True
        assert publisher.events[0].updates[0].degraded is True

    async def test_failed_asset_keeps_stale_price(self, store, fetcher):
        nope = add_asset(store, 1, "NOPE", current_price=42.0)
        add_asset(store, 1, "AAPL")

        result = await fetcher.update_user(1)

        assert result.assets_updated == 1
        assert result.assets_failed == 1
        assert "NOPE" in result.errors
        saved = store.get(Asset, nope.id)
        assert saved.current_price == 42.0
        assert saved.last_price_update is None
        assert store.filter(PriceHistory, asset_id=nope.id) == []

    async def test_no_event_when_nothing_changed(self, store, fetcher, publisher):
        add_asset(store, 1, "NOPE")

        result = await fetcher.update_user(1)

        assert result.event_published is False
        assert publisher.events == []

    async def test_unlisted_assets_are_ignored(self, store, fetcher, equities):
        add_asset(store, 1, None, AssetClass.UNLISTED)
        add_asset(store, 1, "AAPL")

        result = await fetcher.update_user(1)

        assert result.total_assets == 1
        assert equities.batches == [["AAPL"]]

    async def test_shared_symbol_is_fetched_once(self, store, fetcher, equities):
        first = add_asset(store, 1, "AAPL")
        second = add_asset(store, 1, "AAPL")

        result = await fetcher.update_user(1)

        assert equities.batches == [["AAPL"]]
        assert result.assets_updated == 2
        assert store.get(Asset, first.id).current_price == 200.0
        assert store.get(Asset, second.id).current_price == 200.0

    async def test_publisher_failure_keeps_prices(self, store, coordinator, clock):
        aapl = add_asset(store, 1, "AAPL")
        fetcher = BatchPriceFetcher(store, coordinator, RecordingPublisher(fail=True), clock)

        result = await fetcher.update_user(1)

        assert result.assets_updated == 1
        assert result.event_published is False
        assert store.get(Asset, aapl.id).current_price == 200.0

    async def test_whole_class_failure_is_isolated(self, store, publisher, clock, crypto):
        broken = FakeProvider(
            "polygon",
            fail_with=RetriesExhaustedError("down", attempts=4, last_error=NetworkError("down")),
        )
        coordinator = FallbackCoordinator(
            {AssetClass.EQUITY: [broken], AssetClass.CRYPTO: [crypto]}
        )
        fetcher = BatchPriceFetcher(store, coordinator, publisher, clock)
        add_asset(store, 1, "AAPL")
        add_asset(store, 1, "BTC", AssetClass.CRYPTO)

        result = await fetcher.update_user(1)

        assert result.assets_updated == 1
        assert result.assets_failed == 1
        assert [u.symbol for u in publisher.events[0].updates] == ["BTC"]


    async def test_cancelled_mid_fetch_writes_nothing(self, store, publisher, clock, crypto):
        slow = BlockingProvider("polygon", {"AAPL": 200.0})
        coordinator = FallbackCoordinator(
            {AssetClass.EQUITY: [slow], AssetClass.CRYPTO: [crypto]}
        )
        fetcher = BatchPriceFetcher(store, coordinator, publisher, clock)
        aapl = add_asset(store, 1, "AAPL", current_price=180.0)
        btc = add_asset(store, 1, "BTC", AssetClass.CRYPTO, current_price=60000.0)

        task = asyncio.create_task(fetcher.update_user(1))
        await slow.started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert store.get(Asset, aapl.id).current_price == 180.0
        assert store.get(Asset, btc.id).current_price == 60000.0
        assert store.get(Asset, btc.id).last_price_update is None
        assert store.filter(PriceHistory) == []
        assert publisher.events == []


class TestUpdateUsers:
    async def test_one_user_failure_does_not_stop_others(self, engine, coordinator, publisher, clock):
        store = FailingStore(engine, broken_users={2})
        add_asset(store, 1, "AAPL")
        add_asset(store, 3, "MSFT")
        fetcher = BatchPriceFetcher(store, coordinator, publisher, clock, max_concurrent_users=2)

        summary = await fetcher.update_users([1, 2, 3])

        assert summary.users_processed == 2
        assert summary.users_failed == 1
        assert summary.assets_updated == 2
        assert sorted(r.user_id for r in summary.results) == [1, 3]
        assert sorted(e.user_id for e in publisher.events) == [1, 3]


def test_price_change_pct():
    assert price_change_pct(None, 10.0) == 0.0
    assert price_change_pct(0.0, 10.0) == 0.0
    assert price_change_pct(50.0, 40.0) == pytest.approx(-20.0)
