"""
Retry helpers for store reads.

Only reads are retried. A write that failed mid-flight has an unknown outcome,
so it is surfaced as StoreUnavailableError and the caller re-reads state.
"""

import logging
import time
from functools import wraps
from typing import Callable, Any

from sqlalchemy.exc import OperationalError, InterfaceError

from ..config import get_settings
from ..exceptions import StoreUnavailableError
from ..constants import ErrorMessages

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (OperationalError, InterfaceError, ConnectionResetError, TimeoutError)


def store_retry(max_retries: int = None, delay: float = None, exponential_backoff: bool = True):
    """
    Decorator adding bounded retry with backoff to store read methods.

    The wrapped method's owner may expose ``rollback()``; it is called between
    attempts so the session is usable again.

    Args:
        max_retries: Retry attempts after the first call (defaults to STORE_RETRY_ATTEMPTS)
        delay: Initial delay between retries in seconds (defaults to STORE_RETRY_DELAY_SECONDS)
        exponential_backoff: If True, delay doubles with each retry
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(self, *args, **kwargs) -> Any:
            settings = get_settings()
            retries = settings.STORE_RETRY_ATTEMPTS if max_retries is None else max_retries
            wait = settings.STORE_RETRY_DELAY_SECONDS if delay is None else delay
            last_exception = None

            for attempt in range(retries + 1):
                try:
                    return func(self, *args, **kwargs)
                except RETRYABLE_ERRORS as e:
                    last_exception = e
                    logger.warning(f"Store read '{func.__name__}' failed on attempt {attempt + 1}: {e}")
                    rollback = getattr(self, "rollback", None)
                    if rollback is not None:
                        rollback()

                    if attempt == retries:
                        break

                    wait_time = wait * (2 ** attempt) if exponential_backoff else wait
                    logger.info(f"Retrying in {wait_time:.2f} seconds...")
                    time.sleep(wait_time)

            logger.error(f"All retries exhausted for '{func.__name__}'. Last error: {last_exception}")
            raise StoreUnavailableError(ErrorMessages.STORE_UNAVAILABLE) from last_exception

        return wrapper
    return decorator
