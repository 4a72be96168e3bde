"""Per-provider call budgets over minute, day and month windows.

A provider may have several windows (Alpha Vantage: 5/minute and 25/day);
a call is admitted only when every window has headroom, and then every
window is charged. A provider with no configured window is unlimited.

Counters live in memory and assume a single writer. Pass a KeyedStore to
load and write budgets through ``ProviderBudget`` rows when the counters must
outlive the process or be shared.
"""
import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta

from price_tracker.db.models import ProviderBudget, WindowKind
from price_tracker.db.store import KeyedStore
from price_tracker.exceptions import PersistenceError
from price_tracker.utils import utcnow

logger = logging.getLogger(__name__)

RateLimits = Mapping[str, Mapping[WindowKind, int]]


def next_window_reset(kind: WindowKind, now: datetime) -> datetime:
    """Reset boundary of a window that starts at ``now``."""
    if kind == WindowKind.MINUTE:
        return now + timedelta(minutes=1)
    if kind == WindowKind.DAY:
        return now + timedelta(days=1)
    if now.month == 12:
        return datetime(now.year + 1, 1, 1)
    return datetime(now.year, now.month + 1, 1)


class RateLimiter:
    """Tracks and enforces provider call budgets."""

    def __init__(
        self,
        limits: RateLimits,
        *,
        clock: Callable[[], datetime] = utcnow,
        store: KeyedStore | None = None,
    ) -> None:
        self._clock = clock
        self._store = store
        self._budgets: dict[str, list[ProviderBudget]] = {}
        now = clock()
        for provider_id, windows in limits.items():
            self._budgets[provider_id] = [
                self._load_budget(provider_id, WindowKind(kind), limit, now)
                for kind, limit in windows.items()
            ]

    def _load_budget(
        self, provider_id: str, kind: WindowKind, limit: int, now: datetime
    ) -> ProviderBudget:
        if self._store is not None:
            try:
                stored = self._store.get(ProviderBudget, (provider_id, kind))
            except PersistenceError as exc:
                logger.error("Could not load budget %s/%s: %s", provider_id, kind.value, exc)
                stored = None
            if stored is not None:
                stored.limit = limit
                return stored
        return ProviderBudget(
            provider_id=provider_id,
            window_kind=kind,
            limit=limit,
            count=0,
            window_reset_at=next_window_reset(kind, now),
        )

    def try_acquire(self, provider_id: str) -> bool:
        """Charge one call to ``provider_id`` if every window has headroom.

        Returns False, without charging anything, when any window is spent.
        """
        budgets = self._budgets.get(provider_id)
        if not budgets:
            return True

        now = self._clock()
        for budget in budgets:
            if now >= budget.window_reset_at:
                budget.count = 0
                budget.window_reset_at = next_window_reset(budget.window_kind, now)

        exhausted = [b for b in budgets if b.count >= b.limit]
        if exhausted:
            logger.info(
                "Rate limit reached for %s (%s)",
                provider_id,
                ", ".join(f"{b.window_kind.value} {b.count}/{b.limit}" for b in exhausted),
            )
            self._persist(budgets)
            return False

        for budget in budgets:
            budget.count += 1
        self._persist(budgets)
        return True

    def _persist(self, budgets: list[ProviderBudget]) -> None:
        if self._store is None:
            return
        for budget in budgets:
            try:
                self._store.upsert(budget.model_copy())
            except PersistenceError as exc:
                logger.error(
                    "Could not persist budget %s/%s: %s",
                    budget.provider_id,
                    budget.window_kind.value,
                    exc,
                )

    def status(self, provider_id: str) -> list[ProviderBudget]:
        """Copies of the budgets of one provider (empty when unlimited)."""
        return [b.model_copy() for b in self._budgets.get(provider_id, [])]

    def status_all(self) -> dict[str, list[ProviderBudget]]:
        return {provider_id: self.status(provider_id) for provider_id in self._budgets}
