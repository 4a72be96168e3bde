"""Commodity (precious metals) price providers."""
from price_tracker.providers.commodities.gold_api import GoldApiProvider
from price_tracker.providers.commodities.metals_api import MetalsApiProvider

__all__ = ["GoldApiProvider", "MetalsApiProvider"]
