"""Core provider abstractions."""
from price_tracker.providers.core.backoff import (BackoffExecutor,
                                                  RetryConfig,
                                                  default_is_retryable)
from price_tracker.providers.core.exceptions import (NetworkError, ParseError,
                                                     ProviderClientError,
                                                     ProviderError,
                                                     ProviderServerError,
                                                     RateLimitExceeded,
                                                     RetriesExhaustedError,
                                                     UnknownSymbolError,
                                                     error_from_exception,
                                                     error_from_status)
from price_tracker.providers.core.quote_provider_abc import (
    HttpQuoteProviderABC, QuoteProviderABC)
from price_tracker.providers.core.rate_limiter import RateLimiter
from price_tracker.providers.core.symbol_cache import SymbolMapCache
from price_tracker.providers.core.utils import round_price

__all__ = [
    "BackoffExecutor",
    "HttpQuoteProviderABC",
    "NetworkError",
    "ParseError",
    "ProviderClientError",
    "ProviderError",
    "ProviderServerError",
    "QuoteProviderABC",
    "RateLimitExceeded",
    "RateLimiter",
    "RetriesExhaustedError",
    "RetryConfig",
    "SymbolMapCache",
    "UnknownSymbolError",
    "default_is_retryable",
    "error_from_exception",
    "error_from_status",
    "round_price",
]
