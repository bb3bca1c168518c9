"""
Bounded retry with exponential backoff for calls to external sources.
"""

import logging
import random
import time
from functools import wraps
from typing import Callable, Optional, TypeVar

from ..core.config import API_LIMITS
from ..core.exceptions import APIError, SourceFetchError

T = TypeVar('T')

logger = logging.getLogger(__name__)


class RetryError(SourceFetchError):
    """Exception raised when all retry attempts are exhausted."""
    pass


def retry_with_backoff(
    max_retries: Optional[int] = None,
    backoff_factor: Optional[float] = None,
    exceptions: Optional[tuple] = None,
    jitter: bool = True
):
    """
    Decorator for retrying a function with exponential backoff.

    Args:
        max_retries: Retries after the first attempt (defaults to API_LIMITS)
        backoff_factor: Base wait in seconds, doubled on each retry
        exceptions: Tuple of exceptions that trigger a retry
        jitter: Whether to add random jitter to backoff time

    Returns:
        Decorated function
    """
    if max_retries is None:
        max_retries = API_LIMITS["MAX_RETRIES"]
    if backoff_factor is None:
        backoff_factor = API_LIMITS["BACKOFF_FACTOR"]
    exceptions = exceptions or (APIError, ConnectionError, TimeoutError)

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_retries:
                        raise RetryError(
                            f"{func.__name__} failed after {max_retries + 1} attempts: {e}"
                        ) from e

                    # Exponential: base * 2^attempt
                    wait_time = backoff_factor * (2 ** attempt)
                    if jitter:
                        wait_time += random.uniform(0, wait_time * 0.1)

                    logger.debug(f"{func.__name__} attempt {attempt + 1} failed ({e}); retrying in {wait_time:.2f}s")
                    time.sleep(wait_time)

            raise RetryError(f"{func.__name__} was never attempted")

        return wrapper
    return decorator
