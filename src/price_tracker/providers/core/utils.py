"""Shared utilities for price providers."""
from collections.abc import Iterable, Iterator

from price_tracker.providers.core.exceptions import ParseError, ProviderError
from price_tracker.schemas import Quote

DECIMALS = 8


def normalize_stock_symbol(symbol: str) -> str:
    """Normalize a stock ticker (stripped, uppercase)."""
    return symbol.strip().upper()


def normalize_commodity_symbol(symbol: str) -> str:
    """Normalize a metal code such as "xau" to "XAU"."""
    return symbol.strip().upper()


def round_price(x: float | None) -> float | None:
    """Round a price to 8 decimal places; preserve None."""
    if x is None:
        return None
    return round(float(x), DECIMALS)


def chunked(items: list[str], size: int) -> Iterator[list[str]]:
    """Yield consecutive slices of at most ``size`` items."""
    for start in range(0, len(items), size):
        yield items[start:start + size]


def unique_symbols(symbols: Iterable[str]) -> list[str]:
    """Symbols with duplicates removed, first occurrence order kept."""
    return list(dict.fromkeys(symbols))


def complete_batch(
    symbols: Iterable[str],
    results: dict[str, Quote | ProviderError],
    provider_id: str,
) -> dict[str, Quote | ProviderError]:
    """Restrict ``results`` to ``symbols`` and fill gaps with a ParseError.

    Batch fetches must answer every requested symbol exactly once.
    """
    return {
        symbol: results.get(symbol)
        or ParseError(f"No quote returned for {symbol}", provider_id=provider_id)
        for symbol in symbols
    }
