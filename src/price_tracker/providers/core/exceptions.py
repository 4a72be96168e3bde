"""Provider error taxonomy and mapping of raw client exceptions into it.

``retryable`` tells the backoff executor whether to try the same provider
again. ``escalates`` tells the fallback chain whether the next provider
should be asked for the symbol.
"""
import asyncio
import json

import httpx


class ProviderError(Exception):
    """Base error for anything a price provider can fail with."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        provider_id: str | None = None,
        status_code: int | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.provider_id = provider_id
        self.status_code = status_code
        if retryable is not None:
            self.retryable = retryable

    @property
    def escalates(self) -> bool:
        """True when another provider may succeed where this one failed."""
        return self.retryable

    def __str__(self) -> str:
        if self.provider_id:
            return f"{self.provider_id}: {self.message}"
        return self.message


class NetworkError(ProviderError):
    """Transport failure or timeout."""

    retryable = True


class RateLimitExceeded(ProviderError):
    """Call budget exhausted for this cycle. Not retried; escalated."""

    retryable = False

    @property
    def escalates(self) -> bool:
        return True


class ProviderClientError(ProviderError):
    """Terminal request error (bad request, unsupported symbol, ...)."""

    retryable = False


class UnknownSymbolError(ProviderClientError):
    """The provider does not know the symbol. Never retried."""


class ProviderServerError(ProviderError):
    """HTTP 429 or 5xx from the provider."""

    retryable = True


class ParseError(ProviderError):
    """Malformed provider payload."""

    retryable = False


class RetriesExhaustedError(ProviderError):
    """Every attempt failed with a retryable error.

    Terminal for the executor, but still ``retryable`` so the fallback chain
    escalates instead of treating it as a data error.
    """

    retryable = True

    def __init__(
        self,
        message: str,
        *,
        attempts: int,
        last_error: BaseException | None = None,
        provider_id: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, provider_id=provider_id, status_code=status_code)
        self.attempts = attempts
        self.last_error = last_error


def error_from_status(
    status_code: int, provider_id: str | None, detail: str | None = None
) -> ProviderError:
    """Map an HTTP status code to the provider error taxonomy."""
    text = detail or f"HTTP {status_code}"
    if status_code == 429 or status_code >= 500:
        return ProviderServerError(text, provider_id=provider_id, status_code=status_code)
    if status_code == 404:
        return UnknownSymbolError(text, provider_id=provider_id, status_code=status_code)
    return ProviderClientError(text, provider_id=provider_id, status_code=status_code)


def error_from_exception(exc: BaseException, provider_id: str | None = None) -> ProviderError:
    """Map a provider/backend exception to a ProviderError.

    Args:
        exc: The exception raised while calling the provider.
        provider_id: Provider label to attach to the mapped error.

    Returns:
        A ProviderError subclass; ``exc`` itself when it already is one.
    """
    if isinstance(exc, ProviderError):
        if exc.provider_id is None:
            exc.provider_id = provider_id
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        # str(exc) embeds the request URL, which may carry an API key
        response = exc.response
        detail = f"HTTP {response.status_code} {response.reason_phrase}".strip()
        return error_from_status(response.status_code, provider_id, detail)
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        return NetworkError(f"Request timed out: {exc!r}", provider_id=provider_id)
    if isinstance(exc, (httpx.TransportError, OSError)):
        return NetworkError(f"Network error: {exc}", provider_id=provider_id)
    if isinstance(exc, (json.JSONDecodeError, KeyError, TypeError, ValueError)):
        return ParseError(f"Malformed payload: {exc}", provider_id=provider_id)
    return ProviderError(f"{type(exc).__name__}: {exc}", provider_id=provider_id)
