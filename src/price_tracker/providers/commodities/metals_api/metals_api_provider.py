"""Metals-API provider: primary source for precious metals."""
import logging
import os

from price_tracker.providers.commodities.constants import (METAL_NAMES,
                                                           SUPPORTED_METALS,
                                                           UNIT)
from price_tracker.providers.commodities.metals_api.models import (
    CommodityQuoteMetadata, MetalsApiLatestResponse)
from price_tracker.providers.core import HttpQuoteProviderABC, round_price
from price_tracker.providers.core.exceptions import (ProviderClientError,
                                                     ProviderError,
                                                     RateLimitExceeded,
                                                     UnknownSymbolError,
                                                     error_from_exception)
from price_tracker.providers.core.utils import (normalize_commodity_symbol,
                                                unique_symbols)
from price_tracker.schemas import Quote
from price_tracker.utils import parse_timestamp

logger = logging.getLogger(__name__)

# Metals-API error code for "monthly usage limit reached"
USAGE_LIMIT_REACHED = 104


class MetalsApiProvider(HttpQuoteProviderABC):
    """Commodity quotes from Metals-API /latest.

    The free plan allows 50 calls a month, so a whole batch costs a single
    request. Failures reported in-band (``success: false``) apply to every
    symbol of the batch.
    """

    provider_id = "metals_api"
    BASE_URL = "https://metals-api.com/api"

    def __init__(self, api_key: str | None = None, **kwargs) -> None:
        """Initialize the Metals-API provider.

        Args:
            api_key: Metals-API access key. Defaults to METALS_API_KEY env var.
            **kwargs: Forwarded to HttpQuoteProviderABC.
        """
        super().__init__(**kwargs)
        self._api_key = api_key or os.getenv("METALS_API_KEY")

    async def fetch_quote(self, symbol: str) -> Quote:
        result = (await self.fetch_batch([symbol]))[symbol]
        if isinstance(result, ProviderError):
            raise result
        return result

    async def fetch_batch(self, symbols: list[str]) -> dict[str, Quote | ProviderError]:
        wanted = unique_symbols(symbols)
        results: dict[str, Quote | ProviderError] = {}
        codes: dict[str, str] = {}
        for symbol in wanted:
            code = normalize_commodity_symbol(symbol)
            if code in SUPPORTED_METALS:
                codes[symbol] = code
            else:
                results[symbol] = UnknownSymbolError(
                    f"Unsupported commodity symbol: {symbol}", provider_id=self.provider_id
                )

        if codes:
            try:
                latest = await self._fetch_latest(sorted(set(codes.values())))
            except Exception as exc:  # pylint: disable=broad-except
                error = error_from_exception(exc, self.provider_id)
                logger.warning("%s batch failed: %s", self.provider_id, error)
                results.update({symbol: error for symbol in codes})
            else:
                for symbol, code in codes.items():
                    results[symbol] = self._quote_from_rates(code, latest)

        return {symbol: results[symbol] for symbol in wanted}

    async def _fetch_latest(self, codes: list[str]) -> MetalsApiLatestResponse:
        params = {"access_key": self._api_key, "base": "USD", "symbols": ",".join(codes)}

        async def request() -> MetalsApiLatestResponse:
            data = await self._get_json("/latest", params=params)
            latest = MetalsApiLatestResponse.model_validate(data)
            if not latest.success:
                raise self._error_from_payload(latest)
            return latest

        return await self._call(request, description=f"latest {','.join(codes)}")

    def _error_from_payload(self, latest: MetalsApiLatestResponse) -> ProviderError:
        code = latest.error.code if latest.error else None
        info = (latest.error.info if latest.error else None) or "Unknown API error"
        if code == USAGE_LIMIT_REACHED:
            return RateLimitExceeded(info, provider_id=self.provider_id, status_code=code)
        return ProviderClientError(info, provider_id=self.provider_id, status_code=code)

    def _quote_from_rates(self, code: str, latest: MetalsApiLatestResponse) -> Quote | ProviderError:
        rate = latest.rates.get(code)
        if not rate:
            return UnknownSymbolError(
                f"No price data available for {code}", provider_id=self.provider_id
            )
        return Quote(
            symbol=code,
            price=round_price(1 / rate),
            provider_id=self.provider_id,
            observed_at=parse_timestamp(latest.timestamp),
            metadata=CommodityQuoteMetadata(name=METAL_NAMES[code], unit=UNIT).model_dump(),
        )
