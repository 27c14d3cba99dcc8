"""Error types and retry logic for story loading.

Key Components:
- Exception taxonomy for transport and decode failures
- Async retry decorator with exponential backoff

The fetch client collapses every error defined here to ``None`` before
results reach the list controller, so none of them escape a refresh.
"""

import asyncio
import logging
import time
from functools import wraps
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

# Status codes worth retrying: rate limiting and server-side failures
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class StoriesError(Exception):
    """Base exception for story loading errors."""

    def __init__(self, message: str, location: Optional[str] = None, **context):
        """Initialize error with context.

        Args:
            message: Error message
            location: URL of the resource being loaded
            **context: Additional context information
        """
        super().__init__(message)
        self.location = location
        self.context = context
        self.timestamp = time.time()

    def __str__(self):
        base = super().__str__()
        if self.location:
            return f"[{self.location}] {base}"
        return base


class TransportError(StoriesError):
    """Network-level failure: connection error, timeout or non-2xx status."""

    def __init__(
        self,
        message: str,
        location: Optional[str] = None,
        status_code: Optional[int] = None,
        **context,
    ):
        """Initialize transport error.

        Args:
            message: Error message
            location: URL that failed
            status_code: HTTP status code if a response was received
            **context: Additional context
        """
        super().__init__(message, location, **context)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """Connection failures and 429/5xx responses are transient."""
        return self.status_code is None or self.status_code in RETRYABLE_STATUS_CODES


class DecodeError(StoriesError):
    """Payload was not valid JSON or did not have the expected shape."""

    pass


def retry_with_backoff(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    exceptions: tuple = (TransportError,),
):
    """Decorator to retry a coroutine function with exponential backoff.

    Errors whose ``retryable`` attribute is False are raised immediately.

    Args:
        max_retries: Maximum number of retry attempts
        initial_delay: Initial delay in seconds before first retry
        backoff_factor: Multiplier for delay between retries
        exceptions: Tuple of exception types to catch and retry

    Returns:
        Decorated coroutine function with retry logic

    Example:
        @retry_with_backoff(max_retries=2, initial_delay=0.5)
        async def get_body(url):
            ...
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            delay = initial_delay

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if not getattr(e, "retryable", True) or attempt >= max_retries:
                        if attempt:
                            logger.error(
                                "All %d retry attempts failed for %s: %s",
                                attempt, func.__name__, e,
                            )
                        raise
                    logger.warning(
                        "Attempt %d/%d failed for %s: %s. Retrying in %ss...",
                        attempt + 1, max_retries, func.__name__, e, delay,
                        extra={"attempt": attempt + 1},
                    )
                    await asyncio.sleep(delay)
                    delay *= backoff_factor

        return wrapper

    return decorator


__all__ = [
    "StoriesError",
    "TransportError",
    "DecodeError",
    "RETRYABLE_STATUS_CODES",
    "retry_with_backoff",
]
