"""Models for the Polygon snapshot API (response payload and quote metadata)."""
from pydantic import BaseModel, Field


class PolygonTrade(BaseModel):
    """Last trade of a ticker; ``t`` is a Unix timestamp in nanoseconds."""

    p: float | None = None
    t: int | None = None


class PolygonBar(BaseModel):
    """Aggregate bar (day or previous day)."""

    o: float | None = None
    h: float | None = None
    l: float | None = None  # noqa: E741
    c: float | None = None
    v: float | None = None


class PolygonTicker(BaseModel):
    ticker: str
    day: PolygonBar = Field(default_factory=PolygonBar)
    prev_day: PolygonBar = Field(default_factory=PolygonBar, alias="prevDay")
    last_trade: PolygonTrade = Field(default_factory=PolygonTrade, alias="lastTrade")

    model_config = {"populate_by_name": True}


class PolygonSnapshotResponse(BaseModel):
    """Body of /v2/snapshot/locale/us/markets/stocks/tickers/{ticker}."""

    status: str | None = None
    ticker: PolygonTicker | None = None


class PolygonQuoteMetadata(BaseModel):
    """Metadata for an equity quote (previous close, daily change, volume)."""

    previous_close: float | None = None
    change_percent: float | None = None
    volume: float | None = None
