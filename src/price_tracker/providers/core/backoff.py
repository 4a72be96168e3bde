"""Retry with exponential backoff for provider calls.

One executor replaces the hand-rolled retry loop every provider client would
otherwise carry. Failures are classified by a predicate: terminal errors are
re-raised at once, retryable ones are retried after
``initial_delay_s * multiplier ** attempt`` seconds until ``max_retries``
retries have been spent.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import httpx

from price_tracker.providers.core.exceptions import (ProviderError,
                                                     RetriesExhaustedError)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry with exponential backoff."""

    max_retries: int = 3
    initial_delay_s: float = 1.0
    multiplier: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Delay in seconds after the failed 0-based ``attempt``."""
        return self.initial_delay_s * (self.multiplier ** attempt)


def default_is_retryable(exc: BaseException) -> bool:
    """Network errors, timeouts, HTTP 429 and HTTP >= 500 are retryable; the rest is terminal."""
    if isinstance(exc, ProviderError):
        return exc.retryable
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(
        exc, (httpx.TransportError, asyncio.TimeoutError, TimeoutError, ConnectionError)
    )


class BackoffExecutor:
    """Runs an async operation with retry and exponential backoff."""

    def __init__(
        self,
        config: RetryConfig | None = None,
        *,
        is_retryable: Callable[[BaseException], bool] = default_is_retryable,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config or RetryConfig()
        self._is_retryable = is_retryable
        self._sleep = sleep

    @property
    def config(self) -> RetryConfig:
        return self._config

    async def execute(
        self,
        op: Callable[[], Awaitable[T]],
        *,
        provider_id: str | None = None,
        description: str = "request",
    ) -> T:
        """Run ``op`` until it succeeds, fails terminally, or retries run out.

        Args:
            op: Zero-argument coroutine factory; called once per attempt.
            provider_id: Label used in logs and on the exhausted error.
            description: What is being attempted, for logs.

        Returns:
            The value returned by the first successful attempt.

        Raises:
            The terminal exception as raised by ``op``, or RetriesExhaustedError
            after ``max_retries + 1`` retryable failures.
        """
        cfg = self._config
        total_attempts = cfg.max_retries + 1
        last_error: BaseException | None = None

        for attempt in range(total_attempts):
            try:
                return await op()
            except Exception as exc:  # pylint: disable=broad-except
                if not self._is_retryable(exc):
                    raise
                last_error = exc
                if attempt + 1 >= total_attempts:
                    break
                delay = cfg.delay_for(attempt)
                logger.warning(
                    "%s %s attempt %d/%d failed (%s); retrying in %.2fs",
                    provider_id or "provider",
                    description,
                    attempt + 1,
                    total_attempts,
                    exc,
                    delay,
                )
                await self._sleep(delay)

        status_code = getattr(last_error, "status_code", None)
        raise RetriesExhaustedError(
            f"{description} failed after {total_attempts} attempts: {last_error}",
            attempts=total_attempts,
            last_error=last_error,
            provider_id=provider_id,
            status_code=status_code,
        ) from last_error
