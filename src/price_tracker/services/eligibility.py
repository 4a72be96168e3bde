"""Update-eligibility gate: which users are due for a price refresh."""
import logging
import math
from collections.abc import Callable
from datetime import datetime

from price_tracker.db import Asset, KeyedStore, Subscription
from price_tracker.exceptions import PersistenceError
from price_tracker.utils import utcnow

logger = logging.getLogger(__name__)


def minutes_since(last_update: datetime | None, now: datetime) -> float:
    """Minutes elapsed since ``last_update``; never-updated is infinitely stale."""
    if last_update is None:
        return math.inf
    return (now - last_update).total_seconds() / 60


class UpdateEligibilityGate:
    """Selects users whose listed assets are older than their tier's cadence.

    This is admission control, not a lock: a user whose previous refresh has
    not yet written its timestamps can be selected again by the next tick.
    """

    def __init__(self, store: KeyedStore, clock: Callable[[], datetime] = utcnow) -> None:
        self._store = store
        self._clock = clock

    def select_users(self) -> list[int]:
        now = self._clock()
        eligible: list[int] = []
        for subscription in self._store.filter(Subscription):
            try:
                assets = self._store.filter(
                    Asset, lambda a: a.is_listed, user_id=subscription.user_id
                )
            except PersistenceError as exc:
                logger.error("Skipping user %s: could not load assets: %s", subscription.user_id, exc)
                continue
            if not assets:
                continue

            updates = [a.last_price_update for a in assets if a.last_price_update is not None]
            elapsed = minutes_since(max(updates, default=None), now)
            frequency = subscription.effective_update_frequency(now)
            if elapsed >= frequency:
                eligible.append(subscription.user_id)
            else:
                logger.debug(
                    "User %s not due (%.1f of %d minutes)", subscription.user_id, elapsed, frequency
                )

        logger.info("%d user(s) eligible for a price update", len(eligible))
        return eligible
