from price_tracker.providers.commodities.metals_api.metals_api_provider import \
    MetalsApiProvider

__all__ = ["MetalsApiProvider"]
