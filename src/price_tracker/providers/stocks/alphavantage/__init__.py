from price_tracker.providers.stocks.alphavantage.alpha_vantage_provider import \
    AlphaVantageProvider

__all__ = ["AlphaVantageProvider"]
