"""Database models for the price tracking service.

Only asset prices, alert state, subscription cadence, price history and
provider budgets are persisted. Quotes themselves are ephemeral; each
successful quote leaves one append-only PriceHistory row.
"""
from datetime import date, datetime
from enum import Enum

from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from price_tracker.utils import utcnow

FREE_UPDATE_FREQUENCY_MINUTES = 15
PREMIUM_UPDATE_FREQUENCY_MINUTES = 5
FREE_MAX_ACTIVE_ALERTS = 3


class AssetClass(str, Enum):
    """Asset classes; each listed class has its own provider chain."""

    EQUITY = "equity"
    CRYPTO = "crypto"
    COMMODITY = "commodity"
    UNLISTED = "unlisted"


class AlertKind(str, Enum):
    PRICE_TARGET = "price_target"
    PERCENTAGE_CHANGE = "percentage_change"
    MATURITY_REMINDER = "maturity_reminder"


class AlertOperator(str, Enum):
    ABOVE = "above"
    BELOW = "below"
    CHANGE_UP = "change_up"
    CHANGE_DOWN = "change_down"


class AlertState(str, Enum):
    """Alert lifecycle. TRIGGERED is terminal: nothing re-arms an alert."""

    ACTIVE = "active"
    TRIGGERED = "triggered"


class WindowKind(str, Enum):
    """Rate-limit window sizes."""

    MINUTE = "minute"
    DAY = "day"
    MONTH = "month"


class Asset(SQLModel, table=True):
    """A holding owned by a user. Price fields are written only by the price job."""

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    asset_class: AssetClass
    symbol: str | None = None  # null for unlisted holdings
    name: str = ""
    quantity: float = 0.0
    purchase_price: float
    current_price: float | None = None
    last_price_update: NaiveDatetime | None = Field(default=None, sa_type=DateTime)
    maturity_date: date | None = None  # fixed income only

    @property
    def is_listed(self) -> bool:
        """True when the asset can be priced by a provider."""
        return bool(self.symbol) and self.asset_class != AssetClass.UNLISTED


class PriceHistory(SQLModel, table=True):
    """Append-only record of one successful quote applied to an asset."""

    __tablename__ = "price_history"

    id: int | None = Field(default=None, primary_key=True)
    asset_id: int = Field(index=True)
    symbol: str
    asset_class: AssetClass
    price: float
    observed_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)
    source_provider_id: str
    degraded: bool = False


class Alert(SQLModel, table=True):
    """User-configured alert on one asset."""

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    asset_id: int = Field(index=True)
    kind: AlertKind
    operator: AlertOperator | None = None
    threshold_value: float | None = None  # target price or percentage
    reminder_days_before: int | None = None  # maturity reminders only
    state: AlertState = Field(default=AlertState.ACTIVE, index=True)
    last_checked_at: NaiveDatetime | None = Field(default=None, sa_type=DateTime)
    triggered_at: NaiveDatetime | None = Field(default=None, sa_type=DateTime)


class Subscription(SQLModel, table=True):
    """Subscription tier of a user; drives price refresh cadence and alert quota."""

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(unique=True, index=True)
    is_premium: bool = False
    price_update_frequency_minutes: int = FREE_UPDATE_FREQUENCY_MINUTES
    max_active_alerts: int = FREE_MAX_ACTIVE_ALERTS
    subscription_end_date: NaiveDatetime | None = Field(default=None, sa_type=DateTime)

    def is_expired(self, now: datetime) -> bool:
        """True when a dated subscription has run past its end date."""
        return self.subscription_end_date is not None and now > self.subscription_end_date

    def effective_update_frequency(self, now: datetime) -> int:
        """Refresh cadence in minutes; an expired premium tier falls back to the free cadence."""
        if self.is_premium and self.is_expired(now):
            return max(self.price_update_frequency_minutes, FREE_UPDATE_FREQUENCY_MINUTES)
        return self.price_update_frequency_minutes


class ProviderBudget(SQLModel, table=True):
    """Call budget of one provider within one rate-limit window."""

    __tablename__ = "provider_budget"

    provider_id: str = Field(primary_key=True)
    window_kind: WindowKind = Field(primary_key=True)
    limit: int
    count: int = 0
    window_reset_at: NaiveDatetime = Field(sa_type=DateTime)

    @property
    def remaining(self) -> int:
        return max(self.limit - self.count, 0)
