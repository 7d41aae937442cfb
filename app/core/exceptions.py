import enum
import logging
from contextlib import contextmanager

from sqlalchemy import exc as sa_exc

logger = logging.getLogger(__name__)


class Rejection(str, enum.Enum):
    """Expected negative outcomes of the registration core. Returned, never raised."""

    EVENT_NOT_FOUND_OR_PAST = "EVENT_NOT_FOUND_OR_PAST"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    EVENT_FULL = "EVENT_FULL"
    NOT_FOUND = "NOT_FOUND"

    @property
    def message(self) -> str:
        return _REJECTION_MESSAGES[self]


_REJECTION_MESSAGES = {
    Rejection.EVENT_NOT_FOUND_OR_PAST: "Event not found or has already passed",
    Rejection.ALREADY_REGISTERED: "User is already registered for this event",
    Rejection.EVENT_FULL: "Event is at full capacity",
    Rejection.NOT_FOUND: "Registration not found",
}


class ServiceError(Exception):
    pass


class StoreUnavailableError(ServiceError):
    """Transient store fault: pool exhausted, connection lost, timeout or serialization conflict."""


class InvariantViolationError(ServiceError):
    """The store returned a state that correct isolation should make impossible."""


class DuplicateEmailError(ServiceError):
    pass


@contextmanager
def translate_store_errors(operation: str):
    """Re-raise SQLAlchemy transient failures as StoreUnavailableError."""
    try:
        yield
    except sa_exc.TimeoutError as e:
        logger.warning("%s: timed out waiting for a database connection", operation)
        raise StoreUnavailableError("Database connection pool exhausted") from e
    except (sa_exc.OperationalError, sa_exc.DisconnectionError) as e:
        logger.warning("%s: transient database failure: %s", operation, e)
        raise StoreUnavailableError("Database temporarily unavailable") from e
