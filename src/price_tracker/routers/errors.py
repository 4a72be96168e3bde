"""Shared ProviderError-to-HTTP mapping for quote routes."""
from fastapi import HTTPException

from price_tracker.providers.core import (NetworkError, ParseError,
                                          ProviderClientError, ProviderError,
                                          RateLimitExceeded,
                                          RetriesExhaustedError,
                                          UnknownSymbolError)


def provider_error_to_http(
    exc: ProviderError,
    resource_name: str = "Symbol",
    symbol: str | None = None,
) -> tuple[int, str]:
    """Map a provider error to (status_code, detail) for HTTP responses.

    Args:
        exc: The error a provider chain resolved a symbol to.
        resource_name: Label for 404 messages (e.g. "Stock", "Crypto").
        symbol: Optional symbol to include in detail (e.g. "AAPL").

    Returns:
        (status_code, detail) suitable for HTTPException(status_code=..., detail=...).
    """
    if isinstance(exc, UnknownSymbolError):
        if symbol is not None:
            return (404, f"{resource_name} '{symbol}' not found")
        return (404, f"{resource_name} not found")
    if isinstance(exc, ProviderClientError):
        return (400, str(exc))
    if isinstance(exc, RateLimitExceeded):
        return (429, "Provider call budget exhausted, try again later")
    if isinstance(exc, RetriesExhaustedError) and isinstance(exc.last_error, NetworkError):
        return (504, "Request to price provider timed out")
    if isinstance(exc, NetworkError):
        return (504, "Request to price provider timed out")
    if isinstance(exc, ParseError):
        return (502, "Malformed response from price provider")
    if exc.retryable:
        return (502, "Price provider error")
    return (500, "Internal server error")


def raise_provider_http(
    exc: ProviderError,
    resource_name: str = "Symbol",
    symbol: str | None = None,
) -> None:
    """Map provider error to HTTP and raise HTTPException. Never returns."""
    status_code, detail = provider_error_to_http(exc, resource_name, symbol)
    raise HTTPException(status_code=status_code, detail=detail) from exc
