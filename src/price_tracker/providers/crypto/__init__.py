"""Cryptocurrency price providers."""
from price_tracker.providers.crypto.coingecko import CoinGeckoProvider

__all__ = ["CoinGeckoProvider"]
