"""Models for the Alpha Vantage GLOBAL_QUOTE endpoint."""
from pydantic import BaseModel, Field


class AlphaVantageQuoteParams(BaseModel):
    """Query params for GLOBAL_QUOTE. Merge with 'symbol' and 'apikey' at call site."""

    function: str = "GLOBAL_QUOTE"


class AlphaVantageGlobalQuote(BaseModel):
    """The "Global Quote" object; Alpha Vantage sends every value as a string."""

    symbol: str = Field(alias="01. symbol")
    price: float = Field(alias="05. price")
    volume: float | None = Field(default=None, alias="06. volume")
    latest_trading_day: str | None = Field(default=None, alias="07. latest trading day")
    previous_close: float | None = Field(default=None, alias="08. previous close")
    change_percent: str | None = Field(default=None, alias="10. change percent")


class AlphaVantageQuoteMetadata(BaseModel):
    previous_close: float | None = None
    change_percent: float | None = None
    volume: float | None = None
    latest_trading_day: str | None = None
