"""CoinGecko provider for cryptocurrencies."""
import logging
import os

from price_tracker.providers.core import (HttpQuoteProviderABC,
                                          SymbolMapCache, round_price)
from price_tracker.providers.core.exceptions import (ParseError, ProviderError,
                                                     UnknownSymbolError,
                                                     error_from_exception)
from price_tracker.providers.core.utils import chunked, unique_symbols
from price_tracker.providers.crypto.coingecko.models import (
    CoinGeckoCoin, CoinGeckoQuoteMetadata, CoinGeckoSimplePriceParams)
from price_tracker.schemas import Quote
from price_tracker.utils import parse_timestamp

logger = logging.getLogger(__name__)


class CoinGeckoProvider(HttpQuoteProviderABC):
    """Crypto quotes via the CoinGecko API.

    Assets carry tickers ("BTC", "ETH") while CoinGecko prices by coin id
    ("bitcoin", "ethereum"). The ticker -> id map comes from /coins/list and
    is cached for 24 hours; when several coins share a ticker the first
    listed one wins. Tickers missing from the map fail with
    UnknownSymbolError without a price request.
    """

    provider_id = "coingecko"
    BASE_URL = "https://api.coingecko.com/api/v3"
    PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"
    BATCH_SIZE = 250

    def __init__(
        self,
        api_key: str | None = None,
        use_pro_api: bool = False,
        **kwargs,
    ) -> None:
        """Initialize the CoinGecko provider.

        Args:
            api_key: CoinGecko API key. Defaults to COINGECKO_API_KEY env var.
            use_pro_api: Whether to use the Pro API endpoint (key sent as pro key).
            **kwargs: Forwarded to HttpQuoteProviderABC.
        """
        self._api_key = api_key or os.getenv("COINGECKO_API_KEY")
        self._use_pro_api = use_pro_api and bool(self._api_key)

        headers: dict[str, str] = {}
        if self._api_key:
            header = "x-cg-pro-api-key" if self._use_pro_api else "x-cg-demo-api-key"
            headers[header] = self._api_key

        kwargs.setdefault("base_url", self.PRO_BASE_URL if self._use_pro_api else self.BASE_URL)
        super().__init__(headers=headers, **kwargs)
        self._coin_ids = SymbolMapCache(self._load_coin_list)

    async def _load_coin_list(self) -> dict[str, str]:
        async def request() -> dict[str, str]:
            data = await self._get_json("/coins/list")
            if not isinstance(data, list):
                raise ParseError("Invalid coin list response structure", provider_id=self.provider_id)
            mapping: dict[str, str] = {}
            for item in data:
                coin = CoinGeckoCoin.model_validate(item)
                mapping.setdefault(coin.symbol.upper(), coin.id)
            return mapping

        mapping = await self._call(request, description="coin list")
        logger.info("Loaded %d CoinGecko coin ids", len(mapping))
        return mapping

    async def resolve_coin_id(self, symbol: str) -> str:
        """Map a ticker such as "BTC" to its CoinGecko id."""
        coin_id = await self._coin_ids.resolve(symbol.strip())
        if coin_id is None:
            raise UnknownSymbolError(
                f"Unknown cryptocurrency symbol: {symbol}", provider_id=self.provider_id
            )
        return coin_id

    async def fetch_quote(self, symbol: str) -> Quote:
        result = (await self.fetch_batch([symbol]))[symbol]
        if isinstance(result, ProviderError):
            raise result
        return result

    async def fetch_batch(self, symbols: list[str]) -> dict[str, Quote | ProviderError]:
        """Fetch quotes with one /simple/price call per 250 coin ids.

        A failing coin-list load or price call fails every symbol it covers.
        """
        wanted = unique_symbols(symbols)
        try:
            resolved = await self._coin_ids.resolve_many([s.strip() for s in wanted])
        except Exception as exc:  # pylint: disable=broad-except
            error = error_from_exception(exc, self.provider_id)
            logger.warning("%s coin list unavailable: %s", self.provider_id, error)
            return {symbol: error for symbol in wanted}

        results: dict[str, Quote | ProviderError] = {}
        by_coin_id: dict[str, list[str]] = {}
        for symbol in wanted:
            coin_id = resolved.get(symbol.strip())
            if coin_id is None:
                results[symbol] = UnknownSymbolError(
                    f"Unknown cryptocurrency symbol: {symbol}", provider_id=self.provider_id
                )
            else:
                by_coin_id.setdefault(coin_id, []).append(symbol)

        for ids in chunked(list(by_coin_id), self.BATCH_SIZE):
            try:
                data = await self._fetch_simple_price(ids)
            except Exception as exc:  # pylint: disable=broad-except
                error = error_from_exception(exc, self.provider_id)
                logger.warning("%s price batch failed: %s", self.provider_id, error)
                for coin_id in ids:
                    for symbol in by_coin_id[coin_id]:
                        results[symbol] = error
                continue

            for coin_id in ids:
                row = data.get(coin_id)
                for symbol in by_coin_id[coin_id]:
                    if not isinstance(row, dict) or row.get("usd") is None:
                        results[symbol] = UnknownSymbolError(
                            f"No data found for coin id {coin_id}", provider_id=self.provider_id
                        )
                        continue
                    try:
                        results[symbol] = self._quote_from_simple_price(symbol, coin_id, row)
                    except Exception as exc:  # pylint: disable=broad-except
                        results[symbol] = error_from_exception(exc, self.provider_id)
                        logger.warning("%s bad price row for %s: %s",
                                       self.provider_id, coin_id, results[symbol])

        return {symbol: results[symbol] for symbol in wanted}

    async def _fetch_simple_price(self, coin_ids: list[str]) -> dict:
        params = CoinGeckoSimplePriceParams().model_dump() | {"ids": ",".join(coin_ids)}

        async def request() -> dict:
            data = await self._get_json("/simple/price", params=params)
            if not isinstance(data, dict):
                raise ParseError("Invalid price response structure", provider_id=self.provider_id)
            return data

        return await self._call(request, description=f"simple price ({len(coin_ids)} ids)")

    def _quote_from_simple_price(self, symbol: str, coin_id: str, data: dict) -> Quote:
        """Build a Quote from a /simple/price response row."""
        vol = data.get("usd_24h_vol")
        return Quote(
            symbol=symbol.strip().upper(),
            price=round_price(float(data["usd"])),
            provider_id=self.provider_id,
            observed_at=parse_timestamp(data.get("last_updated_at")),
            metadata=CoinGeckoQuoteMetadata(
                coin_id=coin_id,
                market_cap=data.get("usd_market_cap"),
                volume_24h=float(vol) if vol is not None else None,
                change_24h=data.get("usd_24h_change"),
            ).model_dump(),
        )
