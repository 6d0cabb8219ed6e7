"""Error translation for raw backend operations.

Concrete backends talk to a remote service through HTTP libraries and raise
whatever those libraries raise. Every public backend operation runs through
guarded_call, which retries throttled calls and translates foreign exceptions
to the typed hierarchy: absence becomes ObjectNotFoundError, any other failure
becomes BackendUnavailableError.
"""

import logging
import re
from typing import Callable, Optional, TypeVar

from requests.exceptions import ConnectionError, HTTPError, RequestException, Timeout

from .errors import BackendUnavailableError, DriveError, ObjectNotFoundError
from .retry_logic import is_throttle_error, retry_on_throttle

logger = logging.getLogger(__name__)

T = TypeVar('T')


def guarded_call(
    operation: str,
    func: Callable[..., T],
    *args,
    path: Optional[str] = None,
    **kwargs
) -> T:
    """Run a raw backend call with throttling retries and error translation.

    Args:
        operation: Name of the operation, used in messages
        func: The raw call
        *args: Positional arguments for the call
        path: Repository path the call is about, reported by ObjectNotFoundError
        **kwargs: Keyword arguments for the call

    Returns:
        The return value of the call

    Raises:
        ObjectNotFoundError: If the backend reports the object is absent
        BackendUnavailableError: For every other failure
        DriveError: Typed errors raised by the call itself pass through
    """
    def _call():
        try:
            return func(*args, **kwargs)
        except DriveError:
            raise
        except Exception as e:
            translated = translate_error(e, operation, path)
            if translated is None:
                # Throttling is left to the retry loop around us
                raise
            raise translated from e

    _call.__name__ = operation
    return retry_on_throttle(_call)


def translate_error(
    exception: Exception,
    operation: str,
    path: Optional[str] = None
) -> Optional[DriveError]:
    """Translate a foreign exception to a typed drive error.

    Args:
        exception: The original exception from the backend transport
        operation: Description of the operation that failed (for logging)
        path: Repository path the operation is about, if any

    Returns:
        The translated error, or None for throttling responses which the
        caller should retry
    """
    if is_throttle_error(exception):
        return None

    if isinstance(exception, (Timeout, ConnectionError)):
        logger.error(f"Backend unreachable during {operation}: {exception}")
        return BackendUnavailableError(operation, "backend is unreachable")

    status_code = _get_status_code(exception)
    if status_code == 404:
        return ObjectNotFoundError(path or "unknown", f"{operation} found nothing")

    if isinstance(exception, HTTPError) and status_code is not None:
        logger.error(f"Backend operation failed: {operation} - HTTP {status_code}")
        return BackendUnavailableError(operation, f"HTTP {status_code}")

    if isinstance(exception, RequestException):
        logger.error(f"Backend request failed: {operation} - {exception}")
        return BackendUnavailableError(operation, str(exception))

    error_msg = str(exception)
    if re.search(r'\b404\b', error_msg) or 'not found' in error_msg.lower():
        return ObjectNotFoundError(path or "unknown", f"{operation} found nothing")

    logger.error(f"Backend operation failed: {operation} - {error_msg}")
    return BackendUnavailableError(operation, error_msg or type(exception).__name__)


def _get_status_code(exception: Exception) -> Optional[int]:
    status_code = getattr(exception, 'status_code', None)
    if status_code is not None:
        return status_code
    response = getattr(exception, 'response', None)
    if response is not None:
        return getattr(response, 'status_code', None)
    return None
