"""Retry logic with exponential backoff for throttled backend calls.

Remote repositories answer bursts of requests with HTTP 429. Backends use
this module to retry such calls (1s, 2s, 4s) and fail fast for every other
error. The drive layer above the backend never retries.
"""

import logging
import time
from typing import Callable, TypeVar

from .errors import BackendUnavailableError, DriveError

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RETRIES = 3


def retry_on_throttle(func: Callable[..., T], *args, **kwargs) -> T:
    """Retry function on a throttling response with exponential backoff.

    Executes the given function with the provided arguments, retrying up to 3
    times with exponential backoff (1s, 2s, 4s) when the backend reports it is
    throttling requests. Typed drive errors and all other errors are passed
    through immediately.

    Args:
        func: The function to execute with retry logic
        *args: Positional arguments to pass to the function
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The return value of the function

    Raises:
        BackendUnavailableError: If throttling persists after 3 retries
        Other exceptions: Passed through immediately without retry

    Example:
        >>> records = retry_on_throttle(backend.fetch_lists, site_url)
    """
    operation = getattr(func, "__name__", "backend call")

    for retry_num in range(MAX_RETRIES + 1):  # 4 attempts total
        try:
            return func(*args, **kwargs)
        except DriveError:
            raise
        except Exception as e:
            if not is_throttle_error(e):
                raise

            if retry_num >= MAX_RETRIES:
                logger.error(
                    f"Throttling persisted after {MAX_RETRIES} retries, giving up"
                )
                raise BackendUnavailableError(
                    operation, f"throttled after {MAX_RETRIES} retries"
                ) from e

            wait_time = 2 ** retry_num
            logger.info(
                f"Backend throttled {operation}, retrying in {wait_time}s "
                f"(retry {retry_num + 1}/{MAX_RETRIES})"
            )
            time.sleep(wait_time)

    raise BackendUnavailableError(operation, f"throttled after {MAX_RETRIES} retries")


def is_throttle_error(exception: Exception) -> bool:
    """Check if an exception represents a throttling (429) response.

    Args:
        exception: The exception to check

    Returns:
        True if this appears to be a throttling error, False otherwise
    """
    # Specific phrases only; bare "limit" or "429" show up in names and paths
    error_msg = str(exception).lower()
    throttle_patterns = [
        'too many requests',
        'rate limit exceeded',
        'request throttled',
        'server is busy',
    ]
    if any(pattern in error_msg for pattern in throttle_patterns):
        return True

    if getattr(exception, 'status_code', None) == 429:
        return True

    response = getattr(exception, 'response', None)
    if response is not None and getattr(response, 'status_code', None) == 429:
        return True

    return False
