"""Price providers for equities, crypto and precious metals.

Every provider implements QuoteProviderABC and returns unified Quote
objects; batches answer every requested symbol with a Quote or the
ProviderError it failed with.

- PolygonProvider, AlphaVantageProvider, YFinanceProvider: equities
- CoinGeckoProvider: cryptocurrencies
- MetalsApiProvider, GoldApiProvider: precious metals

Example:
    async with PolygonProvider(api_key=key) as provider:
        quote = await provider.fetch_quote("AAPL")
        print(f"{quote.symbol}: ${quote.price}")
"""
from price_tracker.providers.commodities import (GoldApiProvider,
                                                 MetalsApiProvider)
from price_tracker.providers.core import QuoteProviderABC
from price_tracker.providers.crypto import CoinGeckoProvider
from price_tracker.providers.registry import (ProviderRegistry,
                                              create_default_registry)
from price_tracker.providers.stocks import (AlphaVantageProvider,
                                            PolygonProvider, YFinanceProvider)

__all__ = [
    "AlphaVantageProvider",
    "CoinGeckoProvider",
    "GoldApiProvider",
    "MetalsApiProvider",
    "PolygonProvider",
    "ProviderRegistry",
    "QuoteProviderABC",
    "YFinanceProvider",
    "create_default_registry",
]
