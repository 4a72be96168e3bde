"""Tests for the SQLModel-backed keyed store."""
from datetime import datetime

import pytest

from fakes import NOW
from price_tracker.db import (Alert, AlertKind, AlertOperator, AlertState,
                              Asset, AssetClass, PriceHistory, ProviderBudget,
                              SqlModelStore, Subscription, WindowKind)
from price_tracker.db.models import FREE_UPDATE_FREQUENCY_MINUTES
from price_tracker.db.sessions import create_db_engine
from price_tracker.exceptions import PersistenceError


def asset(**overrides) -> Asset:
    fields = {"user_id": 1, "asset_class": AssetClass.EQUITY, "symbol": "AAPL",
              "name": "Apple", "purchase_price": 100.0}
    fields.update(overrides)
    return Asset(**fields)


class TestSqlModelStore:
    def test_append_assigns_id_and_get_reads_back(self, store):
        saved = store.append(asset())

        assert saved.id is not None
        assert store.get(Asset, saved.id).symbol == "AAPL"
        assert store.get(Asset, 999) is None

    def test_upsert_updates_by_primary_key(self, store):
        saved = store.append(asset())
        saved.current_price = 123.45

        store.upsert(saved)

        assert store.get(Asset, saved.id).current_price == 123.45
        assert len(store.filter(Asset)) == 1

    def test_upsert_composite_key(self, store):
        reset = datetime(2025, 4, 1)
        store.upsert(ProviderBudget(provider_id="metals_api", window_kind=WindowKind.MONTH,
                                    limit=50, count=1, window_reset_at=reset))
        store.upsert(ProviderBudget(provider_id="metals_api", window_kind=WindowKind.MONTH,
                                    limit=50, count=2, window_reset_at=reset))

        [budget] = store.filter(ProviderBudget)
        assert budget.count == 2
        assert budget.remaining == 48

    def test_filter_by_equality_and_predicate(self, store):
        store.append(asset(user_id=1, symbol="AAPL"))
        store.append(asset(user_id=1, symbol=None, asset_class=AssetClass.UNLISTED))
        store.append(asset(user_id=2, symbol="MSFT"))

        assert len(store.filter(Asset, user_id=1)) == 2
        assert [a.symbol for a in store.filter(Asset, lambda a: a.is_listed, user_id=1)] == ["AAPL"]
        assert len(store.filter(Asset, symbol=None)) == 1

    def test_history_is_append_only(self, store):
        for price in (1.0, 2.0):
            store.append(PriceHistory(asset_id=1, symbol="BTC", asset_class=AssetClass.CRYPTO,
                                      price=price, source_provider_id="coingecko"))

        assert [h.price for h in store.filter(PriceHistory, asset_id=1)] == [1.0, 2.0]

    def test_naive_timestamps_survive_a_flush(self, store):
        saved = store.append(asset(last_price_update=NOW))
        history = store.append(PriceHistory(asset_id=saved.id, symbol="AAPL",
                                            asset_class=AssetClass.EQUITY, price=1.0,
                                            source_provider_id="polygon"))
        alert = store.append(Alert(user_id=1, asset_id=saved.id, kind=AlertKind.PRICE_TARGET,
                                   operator=AlertOperator.ABOVE, threshold_value=1.0,
                                   state=AlertState.TRIGGERED, last_checked_at=NOW,
                                   triggered_at=NOW))
        sub = store.append(Subscription(user_id=1, is_premium=True, subscription_end_date=NOW))

        assert store.get(Asset, saved.id).last_price_update == NOW
        assert store.get(PriceHistory, history.id).observed_at.tzinfo is None
        stored_alert = store.get(Alert, alert.id)
        assert (stored_alert.last_checked_at, stored_alert.triggered_at) == (NOW, NOW)
        assert stored_alert.state == AlertState.TRIGGERED
        assert store.get(Subscription, sub.id).subscription_end_date == NOW

    def test_missing_tables_raise_persistence_error(self):
        engine = create_db_engine("sqlite://")
        store = SqlModelStore(engine)
        with pytest.raises(PersistenceError):
            store.filter(Asset)
        with pytest.raises(PersistenceError):
            store.append(asset())
        engine.dispose()


class TestSubscription:
    def test_expired_premium_uses_free_cadence(self):
        sub = Subscription(user_id=1, is_premium=True, price_update_frequency_minutes=5,
                           subscription_end_date=datetime(2025, 1, 1))
        assert sub.effective_update_frequency(datetime(2025, 1, 2)) == FREE_UPDATE_FREQUENCY_MINUTES
        assert sub.effective_update_frequency(datetime(2024, 12, 31)) == 5

    def test_open_ended_subscription_never_expires(self):
        sub = Subscription(user_id=1, is_premium=True, price_update_frequency_minutes=5)
        assert sub.is_expired(datetime(2100, 1, 1)) is False
