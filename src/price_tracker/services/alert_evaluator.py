"""
Alert evaluator: one-shot ``ACTIVE -> TRIGGERED`` state machine.

Every evaluation of an active alert first stamps ``last_checked_at``, then
checks the kind-specific condition. A met condition sends one notification
(best-effort), stamps ``triggered_at`` and moves the alert to TRIGGERED,
which is terminal: triggered alerts are skipped without any write.
"""
import asyncio
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, time, timedelta

from price_tracker.db import (Alert, AlertKind, AlertOperator, AlertState,
                              Asset, KeyedStore)
from price_tracker.exceptions import PersistenceError
from price_tracker.schemas import AlertCheckResult, AlertCheckSummary
from price_tracker.services.notifications import Notifier
from price_tracker.utils import utcnow

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Price Alert Triggered"


@dataclass(frozen=True)
class ConditionResult:
    triggered: bool
    reason: str | None = None


NOT_TRIGGERED = ConditionResult(False)


def _label(asset: Asset) -> str:
    return f"{asset.name} ({asset.symbol or 'N/A'})"


def check_price_target(alert: Alert, asset: Asset, now: datetime | None = None) -> ConditionResult:
    """Above: price >= target. Below: price <= target. Both boundaries inclusive."""
    price, target = asset.current_price, alert.threshold_value
    if price is None or target is None:
        return NOT_TRIGGERED

    if alert.operator == AlertOperator.ABOVE and price >= target:
        return ConditionResult(
            True, f"{_label(asset)} reached ${price:.2f}, above target of ${target:.2f}"
        )
    if alert.operator == AlertOperator.BELOW and price <= target:
        return ConditionResult(
            True, f"{_label(asset)} dropped to ${price:.2f}, below target of ${target:.2f}"
        )
    return NOT_TRIGGERED


def check_percentage_change(
    alert: Alert, asset: Asset, now: datetime | None = None
) -> ConditionResult:
    """Lifetime move against the purchase price, not against the previous check."""
    price, target, purchase = asset.current_price, alert.threshold_value, asset.purchase_price
    if price is None or target is None or not purchase:
        return NOT_TRIGGERED

    change = (price - purchase) / purchase * 100
    if alert.operator == AlertOperator.CHANGE_UP and change >= target:
        return ConditionResult(
            True,
            f"{_label(asset)} increased by {change:.2f}%, exceeding target of {target:.2f}%",
        )
    if alert.operator == AlertOperator.CHANGE_DOWN and change <= -target:
        return ConditionResult(
            True,
            f"{_label(asset)} decreased by {abs(change):.2f}%, exceeding target of {target:.2f}%",
        )
    return NOT_TRIGGERED


def check_maturity_reminder(
    alert: Alert, asset: Asset, now: datetime | None = None
) -> ConditionResult:
    """Triggered while ``now`` is in [maturity - reminder_days_before, maturity)."""
    if asset.maturity_date is None or alert.reminder_days_before is None:
        return NOT_TRIGGERED

    now = now or utcnow()
    maturity = datetime.combine(asset.maturity_date, time.min)
    reminder_start = maturity - timedelta(days=alert.reminder_days_before)
    if not reminder_start <= now < maturity:
        return NOT_TRIGGERED

    days = math.ceil((maturity - now) / timedelta(days=1))
    return ConditionResult(
        True,
        f"{asset.name} will mature in {days} day{'s' if days != 1 else ''} "
        f"on {asset.maturity_date.isoformat()}",
    )


CONDITIONS: dict[AlertKind, Callable[[Alert, Asset, datetime], ConditionResult]] = {
    AlertKind.PRICE_TARGET: check_price_target,
    AlertKind.PERCENTAGE_CHANGE: check_percentage_change,
    AlertKind.MATURITY_REMINDER: check_maturity_reminder,
}


class AlertEvaluator:
    """Evaluates active alerts and fires each at most once."""

    def __init__(
        self,
        store: KeyedStore,
        notifier: Notifier,
        clock: Callable[[], datetime] = utcnow,
        max_concurrent_users: int = 4,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._clock = clock
        self._max_concurrent_users = max_concurrent_users

    async def evaluate(self, alert: Alert, asset: Asset) -> AlertCheckResult:
        """Check one alert against its asset and fire it when the condition holds.

        Args:
            alert: The alert; TRIGGERED alerts are returned untouched.
            asset: The asset the alert watches, with its latest price.

        Returns:
            AlertCheckResult describing the outcome.
        """
        result = AlertCheckResult(alert_id=alert.id, user_id=alert.user_id)
        if alert.state != AlertState.ACTIVE:
            return result

        now = self._clock()
        alert.last_checked_at = now
        try:
            self._store.upsert(alert)
        except PersistenceError as exc:
            logger.error("Could not record check of alert %s: %s", alert.id, exc)

        condition = CONDITIONS.get(alert.kind)
        if condition is None:
            result.error = f"Unknown alert kind: {alert.kind}"
            return result

        outcome = condition(alert, asset, now)
        if not outcome.triggered:
            return result

        result.triggered = True
        result.reason = outcome.reason
        result.notification_sent = await self._notify(alert, outcome.reason)

        alert.state = AlertState.TRIGGERED
        alert.triggered_at = now
        try:
            self._store.upsert(alert)
        except PersistenceError as exc:
            logger.error(
                "Could not mark alert %s as triggered, it stays active and may notify again: %s",
                alert.id,
                exc,
            )
            alert.state = AlertState.ACTIVE
            alert.triggered_at = None
            result.triggered = False
            result.error = str(exc)
        else:
            logger.info("Alert %s triggered for user %s: %s", alert.id, alert.user_id, outcome.reason)
        return result

    async def _notify(self, alert: Alert, reason: str | None) -> bool:
        body = reason or "Your alert condition has been met"
        try:
            sent = await self._notifier.send(alert.user_id, NOTIFICATION_TITLE, body, f"alert-{alert.id}")
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Notification for alert %s failed: %s", alert.id, exc)
            return False
        if not sent:
            logger.error("Notification for alert %s was not delivered", alert.id)
        return bool(sent)

    async def check_all(self) -> AlertCheckSummary:
        """Evaluate every active alert: sequentially per user, users in parallel."""
        alerts = self._store.filter(Alert, state=AlertState.ACTIVE)
        by_user: dict[int, list[Alert]] = {}
        for alert in sorted(alerts, key=lambda a: a.id or 0):
            by_user.setdefault(alert.user_id, []).append(alert)

        semaphore = asyncio.Semaphore(self._max_concurrent_users)

        async def check_user(user_alerts: list[Alert]) -> list[AlertCheckResult]:
            async with semaphore:
                return [await self._check_one(alert) for alert in user_alerts]

        per_user = await asyncio.gather(*(check_user(a) for a in by_user.values()))

        summary = AlertCheckSummary()
        for results in per_user:
            summary.results.extend(results)
        summary.alerts_checked = len(summary.results)
        summary.alerts_triggered = sum(1 for r in summary.results if r.triggered)
        summary.notifications_sent = sum(1 for r in summary.results if r.notification_sent)
        logger.info(
            "Checked %d alert(s): %d triggered, %d notification(s) sent",
            summary.alerts_checked,
            summary.alerts_triggered,
            summary.notifications_sent,
        )
        return summary

    async def _check_one(self, alert: Alert) -> AlertCheckResult:
        try:
            asset = self._store.get(Asset, alert.asset_id)
            if asset is None:
                logger.warning("Alert %s watches missing asset %s", alert.id, alert.asset_id)
                return AlertCheckResult(
                    alert_id=alert.id, user_id=alert.user_id, error="Asset not found"
                )
            return await self.evaluate(alert, asset)
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Checking alert %s failed", alert.id)
            return AlertCheckResult(alert_id=alert.id, user_id=alert.user_id, error=str(exc))
