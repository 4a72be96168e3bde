"""Equity price providers, in default priority order."""
from price_tracker.providers.stocks.alphavantage import AlphaVantageProvider
from price_tracker.providers.stocks.polygon import PolygonProvider
from price_tracker.providers.stocks.yfinance import YFinanceProvider

__all__ = ["AlphaVantageProvider", "PolygonProvider", "YFinanceProvider"]
