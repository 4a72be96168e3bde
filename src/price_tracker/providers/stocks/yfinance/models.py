"""Models for YFinance provider (quote metadata)."""
from pydantic import BaseModel


class YFinanceQuoteMetadata(BaseModel):
    """Metadata for a yfinance quote (volume + provider)."""

    volume: float | None = None
    provider: str = "yfinance"
