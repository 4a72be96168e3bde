"""Polygon (Massive) snapshot provider: primary source for equities."""
import os

from price_tracker.providers.core import HttpQuoteProviderABC, round_price
from price_tracker.providers.core.exceptions import ParseError
from price_tracker.providers.core.utils import normalize_stock_symbol
from price_tracker.providers.stocks.polygon.models import (
    PolygonQuoteMetadata, PolygonSnapshotResponse)
from price_tracker.schemas import Quote
from price_tracker.utils import parse_timestamp


class PolygonProvider(HttpQuoteProviderABC):
    """Equity quotes from the Polygon single-ticker snapshot endpoint.

    There is no multi-ticker call on the plans we use, so batches are bounded
    parallel single fetches (the base class default). An unknown ticker comes
    back as HTTP 404 and is terminal.
    """

    provider_id = "polygon"
    BASE_URL = "https://api.polygon.io"
    SNAPSHOT_PATH = "/v2/snapshot/locale/us/markets/stocks/tickers/{ticker}"

    def __init__(self, api_key: str | None = None, **kwargs) -> None:
        """Initialize the Polygon provider.

        Args:
            api_key: Polygon API key. Defaults to POLYGON_API_KEY env var.
            **kwargs: Forwarded to HttpQuoteProviderABC.
        """
        self._api_key = api_key or os.getenv("POLYGON_API_KEY")
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
        super().__init__(headers=headers, **kwargs)

    async def fetch_quote(self, symbol: str) -> Quote:
        ticker = normalize_stock_symbol(symbol)

        async def request() -> Quote:
            data = await self._get_json(self.SNAPSHOT_PATH.format(ticker=ticker))
            return self._quote_from_snapshot(ticker, data)

        return await self._call(request, description=f"snapshot {ticker}")

    def _quote_from_snapshot(self, ticker: str, data: dict) -> Quote:
        """Build a Quote from a snapshot body; price is last trade, else day close."""
        snapshot = PolygonSnapshotResponse.model_validate(data)
        if snapshot.ticker is None:
            raise ParseError(
                f"Invalid response structure for {ticker}", provider_id=self.provider_id
            )

        row = snapshot.ticker
        price = row.last_trade.p or row.day.c
        if not price:
            raise ParseError(f"No price data for {ticker}", provider_id=self.provider_id)

        previous_close = row.prev_day.c
        change_percent = None
        if previous_close:
            change_percent = round((price - previous_close) / previous_close * 100, 2)

        observed_at = parse_timestamp(row.last_trade.t / 1e9 if row.last_trade.t else None)
        return Quote(
            symbol=row.ticker or ticker,
            price=round_price(price),
            provider_id=self.provider_id,
            observed_at=observed_at,
            metadata=PolygonQuoteMetadata(
                previous_close=previous_close,
                change_percent=change_percent,
                volume=row.day.v,
            ).model_dump(),
        )
