"""Exponential backoff retry decorator for async upstream calls."""

import asyncio
import functools
import logging

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def is_transient(exc: Exception) -> bool:
    """Transport failures, rate limits and 5xx responses are worth retrying."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return isinstance(exc, httpx.TransportError)


def retry_with_backoff(max_attempts: int = 3, base_delay: float = 1.0, max_delay: float = 30.0):
    """Decorator: retry an async function on transient errors with exponential backoff.

    Non-transient errors (4xx other than 429, malformed bodies) are raised
    immediately.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except Exception as exc:
                    if not is_transient(exc) or attempt == max_attempts:
                        if attempt > 1:
                            logger.error(
                                "%s failed after %d attempts: %s", func.__name__, attempt, exc
                            )
                        raise
                    delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
                    if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429:
                        delay = max(delay, 10.0)
                    logger.warning(
                        "%s attempt %d/%d failed (%s), retrying in %.1fs",
                        func.__name__,
                        attempt,
                        max_attempts,
                        exc,
                        delay,
                    )
                    await asyncio.sleep(delay)

        return wrapper

    return decorator
