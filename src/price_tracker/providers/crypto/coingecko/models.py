"""Models for CoinGecko provider (quote metadata and API params)."""
from pydantic import BaseModel


class CoinGeckoQuoteMetadata(BaseModel):
    """Metadata for a crypto quote (coin id, market cap, 24h volume and change)."""

    coin_id: str
    market_cap: float | None = None
    volume_24h: float | None = None
    change_24h: float | None = None


class CoinGeckoSimplePriceParams(BaseModel):
    """Params for /simple/price. Merge with 'ids' at call site."""

    vs_currencies: str = "usd"
    include_market_cap: str = "true"
    include_24hr_vol: str = "true"
    include_24hr_change: str = "true"
    include_last_updated_at: str = "true"


class CoinGeckoCoin(BaseModel):
    """One entry of /coins/list."""

    id: str
    symbol: str
    name: str = ""
