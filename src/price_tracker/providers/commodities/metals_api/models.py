"""Models for the Metals-API /latest endpoint."""
from pydantic import BaseModel, Field


class MetalsApiError(BaseModel):
    code: int | None = None
    info: str | None = None


class MetalsApiLatestResponse(BaseModel):
    """Body of /latest. ``rates`` are units of metal per USD, so price = 1 / rate."""

    success: bool = False
    timestamp: int | None = None
    base: str | None = None
    rates: dict[str, float] = Field(default_factory=dict)
    error: MetalsApiError | None = None


class CommodityQuoteMetadata(BaseModel):
    """Metadata for a commodity quote."""

    name: str
    unit: str
