"""On-demand quote lookups through the configured provider chains."""
import logging

from dependency_injector.wiring import inject
from fastapi import APIRouter, HTTPException, Query

from price_tracker.container import CoordinatorDep
from price_tracker.db import AssetClass
from price_tracker.providers.core import ProviderError
from price_tracker.routers.errors import raise_provider_http
from price_tracker.schemas import ResolvedQuote, SymbolQuoteResult

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/quotes", tags=["quotes"])

MAX_SYMBOLS = 50


def _listed_class(asset_class: AssetClass) -> AssetClass:
    if asset_class == AssetClass.UNLISTED:
        raise HTTPException(status_code=400, detail="Unlisted assets have no quotes")
    return asset_class


def _to_result(symbol: str, asset_class: AssetClass, outcome: ResolvedQuote | ProviderError) -> SymbolQuoteResult:
    if isinstance(outcome, ResolvedQuote):
        return SymbolQuoteResult(
            symbol=symbol,
            asset_class=asset_class,
            price=outcome.quote.price,
            source_provider_id=outcome.source_provider_id,
            degraded=outcome.degraded,
            observed_at=outcome.quote.observed_at,
        )
    return SymbolQuoteResult(symbol=symbol, asset_class=asset_class, error=str(outcome))


@router.get("/{asset_class}", response_model=list[SymbolQuoteResult])
@inject
async def get_quotes(
    asset_class: AssetClass,
    coordinator: CoordinatorDep,
    symbols: str = Query(..., description="Comma-separated symbols, e.g. AAPL,MSFT"),
) -> list[SymbolQuoteResult]:
    """Get quotes for several symbols of one asset class.

    Symbols that cannot be resolved are returned with an ``error`` instead of
    failing the request.
    """
    asset_class = _listed_class(asset_class)
    wanted = [s.strip() for s in symbols.split(",") if s.strip()]
    if not wanted:
        raise HTTPException(status_code=400, detail="No symbols given")
    if len(wanted) > MAX_SYMBOLS:
        raise HTTPException(status_code=400, detail=f"At most {MAX_SYMBOLS} symbols per request")

    results = await coordinator.fetch_quotes(asset_class, wanted)
    return [_to_result(symbol, asset_class, outcome) for symbol, outcome in results.items()]


@router.get("/{asset_class}/{symbol}", response_model=SymbolQuoteResult)
@inject
async def get_quote(
    asset_class: AssetClass,
    symbol: str,
    coordinator: CoordinatorDep,
) -> SymbolQuoteResult:
    """Get the current quote for one symbol; provider failures map to HTTP errors."""
    asset_class = _listed_class(asset_class)
    outcome = (await coordinator.fetch_quotes(asset_class, [symbol]))[symbol]
    if isinstance(outcome, ProviderError):
        raise_provider_http(outcome, asset_class.value.capitalize(), symbol)
    return _to_result(symbol, asset_class, outcome)
