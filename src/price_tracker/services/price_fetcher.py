"""
Batch price fetcher: refresh every listed asset of a user in one pass.

Per user: listed assets are partitioned by asset class, each class is
resolved through the fallback coordinator (classes in parallel), then a
single persistence pass writes the new prices and history rows, and one
change event lists everything that moved. Failed assets keep their stale
price. Nothing is written until every class has been fetched, so a run
cancelled mid-fetch leaves the user's assets untouched.
"""
import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from price_tracker.db import Asset, AssetClass, KeyedStore, PriceHistory
from price_tracker.exceptions import PersistenceError
from price_tracker.providers.core import ProviderError, error_from_exception
from price_tracker.providers.core.utils import unique_symbols
from price_tracker.schemas import (PriceChangeEvent, PriceUpdate,
                                   PriceUpdateSummary, ResolvedQuote,
                                   UserPriceUpdateResult)
from price_tracker.services.fallback_coordinator import (CoordinatorResult,
                                                         FallbackCoordinator)
from price_tracker.services.notifications import ChangeEventPublisher
from price_tracker.utils import utcnow

logger = logging.getLogger(__name__)


def price_change_pct(old_price: float | None, new_price: float) -> float:
    """Percent move from ``old_price``; 0 when there is no previous price."""
    if not old_price:
        return 0.0
    return (new_price - old_price) / old_price * 100


class BatchPriceFetcher:
    """Fetches, persists and announces fresh prices for users' listed assets."""

    def __init__(
        self,
        store: KeyedStore,
        coordinator: FallbackCoordinator,
        publisher: ChangeEventPublisher,
        clock: Callable[[], datetime] = utcnow,
        max_concurrent_users: int = 4,
    ) -> None:
        self._store = store
        self._coordinator = coordinator
        self._publisher = publisher
        self._clock = clock
        self._max_concurrent_users = max_concurrent_users

    async def update_users(self, user_ids: list[int]) -> PriceUpdateSummary:
        """Refresh several users concurrently; one user's failure never stops the rest."""
        semaphore = asyncio.Semaphore(self._max_concurrent_users)
        summary = PriceUpdateSummary()

        async def run(user_id: int) -> UserPriceUpdateResult | None:
            async with semaphore:
                try:
                    return await self.update_user(user_id)
                except Exception:  # pylint: disable=broad-except
                    logger.exception("Price update failed for user %s", user_id)
                    return None

        for user_id, result in zip(user_ids, await asyncio.gather(*(run(u) for u in user_ids))):
            if result is None:
                summary.users_failed += 1
                continue
            summary.users_processed += 1
            summary.assets_updated += result.assets_updated
            summary.assets_failed += result.assets_failed
            summary.results.append(result)
            logger.debug("User %s: %d updated, %d failed", user_id, result.assets_updated, result.assets_failed)
        return summary

    async def update_user(self, user_id: int) -> UserPriceUpdateResult:
        """Refresh one user's listed assets.

        Raises:
            PersistenceError: When the user's assets cannot be loaded.
        """
        result = UserPriceUpdateResult(user_id=user_id)
        assets = self._store.filter(Asset, lambda a: a.is_listed, user_id=user_id)
        result.total_assets = len(assets)
        if not assets:
            return result

        by_class: dict[AssetClass, list[Asset]] = {}
        for asset in assets:
            by_class.setdefault(asset.asset_class, []).append(asset)

        quotes = await self._fetch_classes(by_class)

        now = self._clock()
        updates: list[PriceUpdate] = []
        for asset_class, class_assets in by_class.items():
            outcomes = quotes[asset_class]
            for asset in class_assets:
                outcome = outcomes.get(asset.symbol)
                if isinstance(outcome, ResolvedQuote):
                    update = self._apply_quote(asset, outcome, now, result)
                    if update is not None:
                        updates.append(update)
                else:
                    result.assets_failed += 1
                    result.errors[asset.symbol] = str(outcome) if outcome else "No result"

        if updates:
            await self._publish(PriceChangeEvent(user_id=user_id, updates=updates, timestamp=now), result)

        logger.info(
            "User %s: %d/%d asset(s) updated, %d failed",
            user_id,
            result.assets_updated,
            result.total_assets,
            result.assets_failed,
        )
        return result

    async def _fetch_classes(
        self, by_class: dict[AssetClass, list[Asset]]
    ) -> dict[AssetClass, CoordinatorResult]:
        classes = list(by_class)
        fetched = await asyncio.gather(
            *(
                self._coordinator.fetch_quotes(c, unique_symbols(a.symbol for a in by_class[c]))
                for c in classes
            ),
            return_exceptions=True,
        )
        quotes: dict[AssetClass, CoordinatorResult] = {}
        for asset_class, outcome in zip(classes, fetched):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                error: ProviderError = error_from_exception(outcome)
                logger.error("Fetching %s quotes failed: %s", asset_class.value, error)
                outcome = {a.symbol: error for a in by_class[asset_class]}
            quotes[asset_class] = outcome
        return quotes

    def _apply_quote(
        self,
        asset: Asset,
        resolved: ResolvedQuote,
        now: datetime,
        result: UserPriceUpdateResult,
    ) -> PriceUpdate | None:
        """Persist one successful quote; returns the change entry, or None when the write failed."""
        old_price = asset.current_price
        new_price = resolved.quote.price
        asset.current_price = new_price
        asset.last_price_update = now
        try:
            self._store.upsert(asset)
        except PersistenceError as exc:
            logger.error("Could not save price of asset %s (%s): %s", asset.id, asset.symbol, exc)
            result.assets_failed += 1
            result.errors[asset.symbol] = str(exc)
            return None
        result.assets_updated += 1

        try:
            self._store.append(
                PriceHistory(
                    asset_id=asset.id,
                    symbol=asset.symbol,
                    asset_class=asset.asset_class,
                    price=new_price,
                    observed_at=now,
                    source_provider_id=resolved.source_provider_id,
                    degraded=resolved.degraded,
                )
            )
            result.history_stored += 1
        except PersistenceError as exc:
            logger.error("Could not store price history of asset %s: %s", asset.id, exc)

        return PriceUpdate(
            asset_id=asset.id,
            symbol=asset.symbol,
            old_price=old_price,
            new_price=new_price,
            price_change_pct=price_change_pct(old_price, new_price),
            source_provider_id=resolved.source_provider_id,
            degraded=resolved.degraded,
        )

    async def _publish(self, event: PriceChangeEvent, result: UserPriceUpdateResult) -> None:
        try:
            await self._publisher.publish(event)
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Could not publish price change event for user %s: %s", event.user_id, exc)
            return
        result.event_published = True
