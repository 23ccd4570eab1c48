"""Retry utilities with exponential backoff.

Works for plain functions and for coroutine functions; coroutines back off
with ``asyncio.sleep`` so a retrying fetch never blocks the event loop.

Usage:
    from outcome_predictor.utils.retry import retry_with_backoff

    @retry_with_backoff(max_retries=3, exceptions=(TransientSourceError,))
    async def fetch_schedule(session, url):
        async with session.get(url) as response:
            return await response.json()
"""

import asyncio
import inspect
import logging
import time
from functools import wraps
from typing import Callable, Optional, Tuple, Type, TypeVar

T = TypeVar('T')


def _next_delay(delay: float, backoff_factor: float, max_delay: float) -> float:
    return min(delay * backoff_factor, max_delay)


def retry_with_backoff(
    max_retries: int = 3,
    backoff_factor: float = 2.0,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable[[Exception, int], None]] = None,
) -> Callable:
    """Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        backoff_factor: Multiplier for delay between retries (default: 2.0)
        initial_delay: Initial delay in seconds before first retry (default: 1.0)
        max_delay: Maximum delay between retries in seconds (default: 60.0)
        exceptions: Tuple of exception types to catch and retry on
        on_retry: Optional callback function(exception, attempt) called on each retry

    Returns:
        Decorated function (or coroutine function) that will retry on
        specified exceptions
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        logger = logging.getLogger(func.__module__)

        def _log_retry(e: Exception, attempt: int, delay: float) -> None:
            logger.warning(
                f"{func.__name__} attempt {attempt + 1}/{max_retries + 1} failed: {e}. "
                f"Retrying in {delay:.1f}s..."
            )
            if on_retry:
                on_retry(e, attempt)

        def _log_exhausted(e: Exception) -> None:
            logger.error(
                f"{func.__name__} failed after {max_retries + 1} attempts: {e}"
            )

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                delay = initial_delay
                for attempt in range(max_retries + 1):  # +1 for initial attempt
                    try:
                        return await func(*args, **kwargs)
                    except exceptions as e:
                        if attempt == max_retries:
                            _log_exhausted(e)
                            raise
                        _log_retry(e, attempt, delay)
                        await asyncio.sleep(delay)
                        delay = _next_delay(delay, backoff_factor, max_delay)

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            delay = initial_delay
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_retries:
                        _log_exhausted(e)
                        raise
                    _log_retry(e, attempt, delay)
                    time.sleep(delay)
                    delay = _next_delay(delay, backoff_factor, max_delay)

        return wrapper
    return decorator


class RetryableError(Exception):
    """Base exception for errors that should trigger a retry."""
    pass


class NonRetryableError(Exception):
    """Base exception for errors that should NOT trigger a retry."""
    pass
