"""Alpha Vantage provider: backup source for equities."""
import logging
import os

from price_tracker.providers.core import HttpQuoteProviderABC, round_price
from price_tracker.providers.core.exceptions import (ParseError, ProviderError,
                                                     RateLimitExceeded,
                                                     UnknownSymbolError,
                                                     error_from_exception)
from price_tracker.providers.core.utils import (normalize_stock_symbol,
                                                unique_symbols)
from price_tracker.providers.stocks.alphavantage.models import (
    AlphaVantageGlobalQuote, AlphaVantageQuoteMetadata,
    AlphaVantageQuoteParams)
from price_tracker.schemas import Quote
from price_tracker.utils import parse_iso_timestamp

logger = logging.getLogger(__name__)


class AlphaVantageProvider(HttpQuoteProviderABC):
    """Equity quotes from Alpha Vantage GLOBAL_QUOTE.

    The free tier allows 5 calls per minute and 25 per day, so batches run
    one symbol at a time and stop calling as soon as the budget is gone;
    every symbol left over is answered with RateLimitExceeded so the next
    provider in the chain can take it.
    """

    provider_id = "alpha_vantage"
    BASE_URL = "https://www.alphavantage.co"
    QUERY_PATH = "/query"
    RATE_LIMIT_KEYS = ("Note", "Information")

    def __init__(self, api_key: str | None = None, **kwargs) -> None:
        """Initialize the Alpha Vantage provider.

        Args:
            api_key: Alpha Vantage API key. Defaults to ALPHA_VANTAGE_API_KEY env var.
            **kwargs: Forwarded to HttpQuoteProviderABC.
        """
        super().__init__(**kwargs)
        self._api_key = api_key or os.getenv("ALPHA_VANTAGE_API_KEY")

    async def fetch_quote(self, symbol: str) -> Quote:
        ticker = normalize_stock_symbol(symbol)
        params = AlphaVantageQuoteParams().model_dump() | {
            "symbol": ticker,
            "apikey": self._api_key,
        }

        async def request() -> Quote:
            data = await self._get_json(self.QUERY_PATH, params=params)
            return self._quote_from_global_quote(ticker, data)

        return await self._call(request, description=f"GLOBAL_QUOTE {ticker}")

    async def fetch_batch(self, symbols: list[str]) -> dict[str, Quote | ProviderError]:
        """Fetch sequentially; once rate limited, the rest are not requested."""
        results: dict[str, Quote | ProviderError] = {}
        limited: RateLimitExceeded | None = None
        for symbol in unique_symbols(symbols):
            if limited is not None:
                results[symbol] = limited
                continue
            try:
                results[symbol] = await self.fetch_quote(symbol)
            except Exception as exc:  # pylint: disable=broad-except
                error = error_from_exception(exc, self.provider_id)
                logger.warning("%s quote for %s failed: %s", self.provider_id, symbol, error)
                results[symbol] = error
                if isinstance(error, RateLimitExceeded):
                    limited = error
        return results

    def _quote_from_global_quote(self, ticker: str, data: dict) -> Quote:
        """Build a Quote from a GLOBAL_QUOTE body, mapping in-band errors."""
        if data.get("Error Message"):
            raise UnknownSymbolError(f"Invalid symbol: {ticker}", provider_id=self.provider_id)
        for key in self.RATE_LIMIT_KEYS:
            if data.get(key):
                raise RateLimitExceeded(
                    "Rate limit exceeded (API response)", provider_id=self.provider_id
                )

        raw = data.get("Global Quote")
        if not raw or not raw.get("01. symbol"):
            raise ParseError(
                f"Invalid response structure for {ticker}", provider_id=self.provider_id
            )

        quote = AlphaVantageGlobalQuote.model_validate(raw)
        if quote.price <= 0:
            raise ParseError(f"No price data for {ticker}", provider_id=self.provider_id)

        change_percent = None
        if quote.change_percent:
            change_percent = round(float(quote.change_percent.rstrip("%")), 2)

        return Quote(
            symbol=quote.symbol,
            price=round_price(quote.price),
            provider_id=self.provider_id,
            observed_at=parse_iso_timestamp(quote.latest_trading_day),
            metadata=AlphaVantageQuoteMetadata(
                previous_close=quote.previous_close,
                change_percent=change_percent,
                volume=quote.volume,
                latest_trading_day=quote.latest_trading_day,
            ).model_dump(),
        )
