from price_tracker.providers.stocks.polygon.polygon_provider import \
    PolygonProvider

__all__ = ["PolygonProvider"]
