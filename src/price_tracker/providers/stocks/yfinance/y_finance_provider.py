"""Yahoo Finance provider: last-resort source for equities."""
import asyncio

import yfinance as yf

from price_tracker.providers.core import QuoteProviderABC, round_price
from price_tracker.providers.core.exceptions import (NetworkError,
                                                     UnknownSymbolError)
from price_tracker.providers.core.utils import normalize_stock_symbol
from price_tracker.providers.stocks.yfinance.models import \
    YFinanceQuoteMetadata
from price_tracker.schemas import Quote
from price_tracker.utils import utcnow


class YFinanceProvider(QuoteProviderABC):
    """Equity quotes via the yfinance library.

    No API key required. yfinance is blocking, so each lookup runs in a
    worker thread bounded by ``asyncio.wait_for``.
    """

    provider_id = "yahoo"

    def _extract_price_volume(
        self, ticker: yf.Ticker, symbol: str
    ) -> tuple[float, float | None]:
        """Extract price and volume from ticker; raises if price unavailable."""
        info = getattr(ticker, "fast_info", None)
        if info and (price := info.get("lastPrice") or info.get("regularMarketPrice")):
            vol = info.get("lastVolume")
            return float(price), float(vol) if vol is not None else None
        full = ticker.info or {}
        price = full.get("currentPrice") or full.get("regularMarketPrice")
        if price is None:
            raise UnknownSymbolError(
                f"Stock '{symbol}' not found or has no price data",
                provider_id=self.provider_id,
            )
        vol = full.get("volume")
        return float(price), float(vol) if vol is not None else None

    def _fetch_quote_sync(self, symbol: str) -> Quote:
        """Fetch a single quote synchronously (run in thread)."""
        price, volume = self._extract_price_volume(yf.Ticker(symbol), symbol)
        return Quote(
            symbol=symbol,
            price=round_price(price),
            provider_id=self.provider_id,
            observed_at=utcnow(),
            metadata=YFinanceQuoteMetadata(volume=volume).model_dump(),
        )

    async def fetch_quote(self, symbol: str) -> Quote:
        sym = normalize_stock_symbol(symbol)

        async def request() -> Quote:
            try:
                return await asyncio.wait_for(
                    asyncio.to_thread(self._fetch_quote_sync, sym),
                    timeout=self._timeout_s,
                )
            except asyncio.TimeoutError as e:
                raise NetworkError(
                    f"Lookup for '{sym}' timed out after {self._timeout_s}s",
                    provider_id=self.provider_id,
                ) from e

        return await self._call(request, description=f"quote {sym}")
