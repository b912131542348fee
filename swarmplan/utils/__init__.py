"""Utility functions and helpers for the swarmplan application."""
import functools
import logging
import time
from typing import Any, Callable, Type

from ..config import Config


def redact_sensitive_data(data: Any) -> Any:
    """Recursively redact sensitive data from dictionaries and lists.

    Args:
        data: Input data that might contain sensitive information

    Returns:
        Data with sensitive values redacted
    """
    if isinstance(data, dict):
        return {
            k: "[REDACTED]" if any(
                redact_key.lower() in str(k).lower()
                for redact_key in Config.REDACT_KEYS
            ) else redact_sensitive_data(v)
            for k, v in data.items()
        }
    elif isinstance(data, (list, tuple)):
        return [redact_sensitive_data(item) for item in data]
    return data


class RetryError(Exception):
    """Raised when a function keeps failing after all retries."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


def retry(
    max_retries: int = None,
    delay: float = None,
    exceptions: tuple[Type[Exception], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
):
    """Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts
        delay: Initial delay between retries in seconds
        exceptions: Tuple of exceptions to catch and retry on
        sleep: Sleep function, replaceable in tests

    Returns:
        Decorated function with retry logic
    """
    if max_retries is None:
        max_retries = Config.MAX_RETRIES
    if delay is None:
        delay = Config.RETRY_DELAY

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            last_exception = None

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e
                    if attempt < max_retries:
                        wait_time = delay * (2 ** attempt)  # Exponential backoff
                        logging.getLogger(__name__).warning(
                            f"Attempt {attempt + 1} failed: {str(e)}. "
                            f"Retrying in {wait_time:.2f}s..."
                        )
                        sleep(wait_time)

            raise RetryError(
                f"Failed after {max_retries + 1} attempts. Last error: {str(last_exception)}",
                attempts=max_retries + 1,
            ) from last_exception
        return wrapper
    return decorator
