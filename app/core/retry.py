import logging
import time
from functools import wraps

from app.core.config import get_settings
from app.core.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


def retry_transient(attempts: int | None = None, delay: float = 0.05, backoff_factor: float = 2.0):
    """
    Retry a read-only operation on StoreUnavailableError.

    Only for idempotent reads. Writes must surface the failure to the caller,
    since a retry after an ambiguous commit could not tell success from failure.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            max_attempts = attempts or get_settings().READ_RETRY_ATTEMPTS
            wait = delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except StoreUnavailableError:
                    if attempt == max_attempts:
                        logger.error("%s failed after %d attempts", func.__name__, attempt)
                        raise
                    logger.warning(
                        "%s attempt %d/%d failed, retrying in %.2fs",
                        func.__name__, attempt, max_attempts, wait,
                    )
                    time.sleep(wait)
                    wait *= backoff_factor

        return wrapper

    return decorator
