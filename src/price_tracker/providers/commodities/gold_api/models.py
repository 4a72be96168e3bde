"""Models for the Gold-API price endpoint."""
from pydantic import BaseModel, Field


class GoldApiPriceResponse(BaseModel):
    """Body of /price/{symbol}."""

    name: str = ""
    price: float | None = None
    symbol: str | None = None
    updated_at: str | None = Field(default=None, alias="updatedAt")

    model_config = {"populate_by_name": True}
