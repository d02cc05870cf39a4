from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Final, TypeVar

import aiohttp

from .errors import NetworkError, RateLimitError, ServerError

log: Final = logging.getLogger("package-verifier")

T = TypeVar("T")

DEFAULT_MAX_RETRIES: Final = 3
BASE_DELAY_SECONDS: Final = 1.0

_TRANSIENT_MARKERS: Final = (
    "timeout",
    "timed out",
    "etimedout",
    "econnreset",
    "econnrefused",
    "connection reset",
    "connection refused",
)


def is_retryable_error(error: BaseException) -> bool:
    """Return True when ``error`` is transient and worth another attempt.

    Rate limits, network failures, 5xx responses and timeout or reset
    conditions are retryable. A definitive answer (not found, other 4xx) is not.
    """
    if isinstance(error, (RateLimitError, NetworkError, ServerError)):
        return True
    if isinstance(error, aiohttp.ClientResponseError):
        return error.status == 429 or error.status >= 500
    if isinstance(error, (asyncio.TimeoutError, ConnectionError)):
        return True
    message = str(error).lower()
    return any(marker in message for marker in _TRANSIENT_MARKERS)


def backoff_delay(
    attempt: int,
    error: BaseException,
    *,
    base_delay: float = BASE_DELAY_SECONDS,
) -> float:
    """Seconds to wait after failed ``attempt`` (0-based).

    A server-supplied retry-after wins over the exponential schedule.
    """
    if isinstance(error, RateLimitError) and error.retry_after is not None:
        return float(error.retry_after)
    return base_delay * (2**attempt)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    *,
    base_delay: float = BASE_DELAY_SECONDS,
    description: str = "operation",
) -> T:
    """Await ``operation`` up to ``max_retries`` times.

    Non-retryable errors are raised immediately. When every attempt fails with
    a retryable error the last one is re-raised.
    """
    last_error: BaseException | None = None
    for attempt in range(max_retries):
        try:
            return await operation()
        except Exception as exc:
            last_error = exc
            if not is_retryable_error(exc):
                raise
            if attempt >= max_retries - 1:
                break
            delay = backoff_delay(attempt, exc, base_delay=base_delay)
            log.warning(
                "Retryable failure for %s (attempt %d/%d): %s; retrying in %.1fs",
                description,
                attempt + 1,
                max_retries,
                exc,
                delay,
            )
            await asyncio.sleep(delay)

    if last_error is None:
        raise ValueError("max_retries must be at least 1")
    log.error("Retries exhausted for %s: %s", description, last_error)
    raise last_error


__all__ = [
    "BASE_DELAY_SECONDS",
    "DEFAULT_MAX_RETRIES",
    "backoff_delay",
    "execute_with_retry",
    "is_retryable_error",
]
