"""
Retry logic with exponential backoff for handling transient store failures.

Used by the batch recompute to give a single entity a few more attempts
when the signal store is briefly locked or unavailable.
"""

import time
import functools
from typing import Callable, Type, Tuple, Optional


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""
    pass


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable] = None,
    give_up_on: Tuple[Type[Exception], ...] = (),
):
    """
    Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (0 = no retries)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries in seconds
        exponential_base: Base for exponential calculation (delay *= base)
        exceptions: Tuple of exceptions to catch and retry
        on_retry: Optional callback function(attempt, exception, delay)
        give_up_on: Subclasses of `exceptions` that are permanent; re-raised
            immediately without retrying

    Example:
        @exponential_backoff(max_retries=3, base_delay=0.5, exceptions=(StorageError,))
        def persist(entity_id, score):
            repository.persist_score(entity_id, score, score >= 70)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except give_up_on:
                    raise
                except exceptions as e:
                    # Don't sleep after the last attempt
                    if attempt < max_retries:
                        current_delay = min(delay, max_delay)

                        if on_retry:
                            on_retry(attempt + 1, e, current_delay)

                        time.sleep(current_delay)
                        delay *= exponential_base
                    else:
                        raise RetryError(
                            f"Failed after {max_retries + 1} attempts: {str(e)}"
                        ) from e

        return wrapper
    return decorator


def is_transient_error(exception: Exception) -> bool:
    """
    Determine if an exception is likely transient and worth retrying.

    Args:
        exception: Exception to check

    Returns:
        True if error looks like a lock, timeout or dropped connection
    """
    error_str = str(exception).lower()

    transient_keywords = [
        'timeout',
        'timed out',
        'connection',
        'database is locked',
        'database is busy',
        'temporary failure',
        'service unavailable',
        'connection reset',
    ]

    return any(keyword in error_str for keyword in transient_keywords)
