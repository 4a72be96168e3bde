"""Pydantic schemas for runtime use and API payloads. Not persisted to DB."""
from datetime import datetime

from pydantic import BaseModel, Field

from price_tracker.db import AssetClass
from price_tracker.utils import utcnow


class Quote(BaseModel):
    """A single price observation for a symbol from one provider at one instant."""

    symbol: str
    price: float
    provider_id: str
    observed_at: datetime = Field(default_factory=utcnow)
    metadata: dict | None = None


class ResolvedQuote(BaseModel):
    """A quote as returned by the fallback chain, tagged with its source."""

    quote: Quote
    source_provider_id: str
    degraded: bool = False  # resolved by a non-primary provider


class PriceUpdate(BaseModel):
    """One asset price change, as carried in a change event."""

    asset_id: int
    symbol: str
    old_price: float | None
    new_price: float
    price_change_pct: float
    source_provider_id: str
    degraded: bool = False


class PriceChangeEvent(BaseModel):
    """Aggregated per-user notification listing every asset updated in one run."""

    user_id: int
    updates: list[PriceUpdate]
    timestamp: datetime = Field(default_factory=utcnow)


class UserPriceUpdateResult(BaseModel):
    user_id: int
    total_assets: int = 0
    assets_updated: int = 0
    assets_failed: int = 0
    history_stored: int = 0
    event_published: bool = False
    errors: dict[str, str] = Field(default_factory=dict)


class PriceUpdateSummary(BaseModel):
    users_processed: int = 0
    users_failed: int = 0
    assets_updated: int = 0
    assets_failed: int = 0
    results: list[UserPriceUpdateResult] = Field(default_factory=list)


class AlertCheckResult(BaseModel):
    alert_id: int
    user_id: int
    triggered: bool = False
    reason: str | None = None
    notification_sent: bool = False
    error: str | None = None


class AlertCheckSummary(BaseModel):
    alerts_checked: int = 0
    alerts_triggered: int = 0
    notifications_sent: int = 0
    results: list[AlertCheckResult] = Field(default_factory=list)


class RunSummary(BaseModel):
    """Summary reported to the scheduler for one invocation."""

    completed: bool = True
    users_processed: int = 0
    assets_updated: int = 0
    assets_failed: int = 0
    alerts_checked: int = 0
    alerts_triggered: int = 0
    notifications_sent: int = 0
    duration_ms: int = 0


class BudgetStatus(BaseModel):
    """Rate-limit budget of one provider window."""

    provider_id: str
    window_kind: str
    limit: int
    count: int
    remaining: int
    window_reset_at: datetime


class SymbolQuoteResult(BaseModel):
    """Per-symbol result of an on-demand quote lookup."""

    symbol: str
    asset_class: AssetClass
    price: float | None = None
    source_provider_id: str | None = None
    degraded: bool = False
    observed_at: datetime | None = None
    error: str | None = None


__all__ = [
    "AlertCheckResult",
    "AlertCheckSummary",
    "BudgetStatus",
    "PriceChangeEvent",
    "PriceUpdate",
    "PriceUpdateSummary",
    "Quote",
    "ResolvedQuote",
    "RunSummary",
    "SymbolQuoteResult",
    "UserPriceUpdateResult",
]
