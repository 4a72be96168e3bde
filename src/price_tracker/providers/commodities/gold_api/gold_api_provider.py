"""Gold-API provider: keyless backup source for precious metals."""
from price_tracker.providers.commodities.constants import (METAL_NAMES,
                                                           SUPPORTED_METALS,
                                                           UNIT)
from price_tracker.providers.commodities.gold_api.models import \
    GoldApiPriceResponse
from price_tracker.providers.commodities.metals_api.models import \
    CommodityQuoteMetadata
from price_tracker.providers.core import HttpQuoteProviderABC, round_price
from price_tracker.providers.core.exceptions import (ProviderServerError,
                                                     UnknownSymbolError)
from price_tracker.providers.core.utils import normalize_commodity_symbol
from price_tracker.schemas import Quote
from price_tracker.utils import parse_iso_timestamp


class GoldApiProvider(HttpQuoteProviderABC):
    """Commodity quotes from api.gold-api.com; one request per metal, no key."""

    provider_id = "gold_api"
    BASE_URL = "https://api.gold-api.com"

    async def fetch_quote(self, symbol: str) -> Quote:
        code = normalize_commodity_symbol(symbol)
        if code not in SUPPORTED_METALS:
            raise UnknownSymbolError(
                f"Unsupported commodity symbol: {symbol}. "
                f"Supported symbols: {', '.join(sorted(SUPPORTED_METALS))}",
                provider_id=self.provider_id,
            )

        async def request() -> Quote:
            data = await self._get_json(f"/price/{code}")
            return self._quote_from_price(code, data)

        return await self._call(request, description=f"price {code}")

    def _quote_from_price(self, code: str, data: dict) -> Quote:
        body = GoldApiPriceResponse.model_validate(data)
        if not body.price or not body.symbol:
            # an empty body here is transient upstream, not a bad symbol
            raise ProviderServerError(
                f"Invalid response structure for {code}", provider_id=self.provider_id
            )
        return Quote(
            symbol=code,
            price=round_price(body.price),
            provider_id=self.provider_id,
            observed_at=parse_iso_timestamp(body.updated_at),
            metadata=CommodityQuoteMetadata(
                name=body.name or METAL_NAMES[code], unit=UNIT
            ).model_dump(),
        )
