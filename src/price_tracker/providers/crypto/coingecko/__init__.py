from price_tracker.providers.crypto.coingecko.coin_gecko_provider import \
    CoinGeckoProvider

__all__ = ["CoinGeckoProvider"]
