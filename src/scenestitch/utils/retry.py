"""Retry helpers for transient external-service failures."""

import asyncio
import functools
import inspect
import logging
import random
import time

logger = logging.getLogger(__name__)


class RetryableError(Exception):
    """Base class for errors worth another attempt."""


class NetworkError(RetryableError):
    """Connection reset, DNS failure, read timeout."""


class TemporaryServiceError(RetryableError):
    """Upstream returned a 5xx or otherwise asked us to come back later."""


class APIRateLimitError(RetryableError):
    """Upstream returned 429."""


RETRYABLE_ERRORS = (NetworkError, TemporaryServiceError, APIRateLimitError)


def _backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    delay = min(base_delay * (2**attempt), max_delay)
    return delay + random.uniform(0, delay * 0.25)


def retry_api_call(max_retries: int = 3, base_delay: float = 1.0, max_delay: float = 30.0):
    """Retry decorator for API calls with exponential backoff and jitter.

    Only NetworkError, TemporaryServiceError and APIRateLimitError trigger a
    retry. Anything else propagates immediately. After ``max_retries`` extra
    attempts the last error is re-raised.

    Works for both plain functions and coroutine functions.

    Args:
        max_retries: Number of retries after the first attempt
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for a single delay, in seconds
    """

    def decorator(func):
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                for attempt in range(max_retries + 1):
                    try:
                        return await func(*args, **kwargs)
                    except RETRYABLE_ERRORS as e:
                        if attempt >= max_retries:
                            logger.warning(
                                f"[Retry] {func.__name__} failed after {attempt + 1} attempts: {e}"
                            )
                            raise
                        delay = _backoff_delay(attempt, base_delay, max_delay)
                        logger.info(
                            f"[Retry] {func.__name__} attempt {attempt + 1} failed ({e}), "
                            f"retrying in {delay:.1f}s"
                        )
                        await asyncio.sleep(delay)

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except RETRYABLE_ERRORS as e:
                    if attempt >= max_retries:
                        logger.warning(
                            f"[Retry] {func.__name__} failed after {attempt + 1} attempts: {e}"
                        )
                        raise
                    delay = _backoff_delay(attempt, base_delay, max_delay)
                    logger.info(
                        f"[Retry] {func.__name__} attempt {attempt + 1} failed ({e}), "
                        f"retrying in {delay:.1f}s"
                    )
                    time.sleep(delay)

        return sync_wrapper

    return decorator
