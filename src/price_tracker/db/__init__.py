"""Database package: models, session management and the keyed store."""
from price_tracker.db.models import (Alert, AlertKind, AlertOperator,
                                     AlertState, Asset, AssetClass,
                                     PriceHistory, ProviderBudget,
                                     Subscription, WindowKind)
from price_tracker.db.store import KeyedStore, SqlModelStore

__all__ = [
    "Alert",
    "AlertKind",
    "AlertOperator",
    "AlertState",
    "Asset",
    "AssetClass",
    "KeyedStore",
    "PriceHistory",
    "ProviderBudget",
    "SqlModelStore",
    "Subscription",
    "WindowKind",
]
