from price_tracker.providers.commodities.gold_api.gold_api_provider import \
    GoldApiProvider

__all__ = ["GoldApiProvider"]
