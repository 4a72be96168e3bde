"""Scheduled jobs: one price-update tick and one alert-check tick."""
import logging
import time

from price_tracker.schemas import (AlertCheckSummary, PriceUpdateSummary,
                                   RunSummary)
from price_tracker.services.alert_evaluator import AlertEvaluator
from price_tracker.services.eligibility import UpdateEligibilityGate
from price_tracker.services.price_fetcher import BatchPriceFetcher

logger = logging.getLogger(__name__)


class PriceUpdateJob:
    """Refreshes prices of every user that is due, per subscription cadence."""

    def __init__(self, gate: UpdateEligibilityGate, fetcher: BatchPriceFetcher) -> None:
        self._gate = gate
        self._fetcher = fetcher

    async def run(self) -> PriceUpdateSummary:
        user_ids = self._gate.select_users()
        if not user_ids:
            logger.info("Price update: no users due")
            return PriceUpdateSummary()
        summary = await self._fetcher.update_users(user_ids)
        logger.info(
            "Price update: %d user(s) processed, %d failed, %d asset(s) updated, %d failed",
            summary.users_processed,
            summary.users_failed,
            summary.assets_updated,
            summary.assets_failed,
        )
        return summary


class AlertCheckJob:
    """Evaluates every active alert once."""

    def __init__(self, evaluator: AlertEvaluator) -> None:
        self._evaluator = evaluator

    async def run(self) -> AlertCheckSummary:
        return await self._evaluator.check_all()


def build_run_summary(
    prices: PriceUpdateSummary | None,
    alerts: AlertCheckSummary | None,
    started: float,
) -> RunSummary:
    """Fold job summaries into the counts reported to the scheduler.

    Args:
        prices: Price-update summary, or None when that job did not run.
        alerts: Alert-check summary, or None when that job did not run.
        started: ``time.monotonic()`` at the start of the run.
    """
    summary = RunSummary(duration_ms=int((time.monotonic() - started) * 1000))
    if prices is not None:
        summary.users_processed = prices.users_processed
        summary.assets_updated = prices.assets_updated
        summary.assets_failed = prices.assets_failed
    if alerts is not None:
        summary.alerts_checked = alerts.alerts_checked
        summary.alerts_triggered = alerts.alerts_triggered
        summary.notifications_sent = alerts.notifications_sent
    return summary
