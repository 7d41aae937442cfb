"""
Capacity-constrained registration core.

Every seat decision runs inside one transaction that first locks the event
row (``SELECT ... FOR UPDATE``), so two concurrent callers for the same event
can never both see the last free seat. Seats taken are always counted from
live registration rows at decision time; no counter column exists.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.clock import as_utc, utcnow
from app.core.exceptions import (
    InvariantViolationError,
    Rejection,
    translate_store_errors,
)
from app.core.retry import retry_transient
from app.database.db import transaction
from app.models.events import Event
from app.models.registrations import Registration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventStats:
    event_id: int
    capacity: int
    total_registrations: int
    remaining_capacity: int
    percentage_used: float


def register(
    db: Session, *, event_id: int, user_id: int, now: datetime | None = None
) -> Registration | Rejection:
    """
    Claim one seat of ``event_id`` for ``user_id``.

    Returns the committed Registration, or a Rejection when the event is
    unknown or already started, the user already holds a seat, or the event
    is full. Store faults raise StoreUnavailableError and are never retried
    here.
    """
    now = as_utc(now) if now else utcnow()
    try:
        with translate_store_errors("register"), transaction(db):
            outcome = _register_in_transaction(db, event_id, user_id, now)
    except IntegrityError:
        # The unique (user_id, event_id) constraint backs up the duplicate check
        if _registration_exists(db, event_id, user_id):
            logger.info("Duplicate registration for user %s on event %s caught by constraint", user_id, event_id)
            return Rejection.ALREADY_REGISTERED
        raise

    if isinstance(outcome, Rejection):
        logger.debug("Registration of user %s for event %s rejected: %s", user_id, event_id, outcome.value)
    else:
        logger.info(
            "Registered user %s for event %s",
            user_id,
            event_id,
            extra={"registration_id": outcome.id, "event_id": event_id, "user_id": user_id},
        )
    return outcome


def _register_in_transaction(
    db: Session, event_id: int, user_id: int, now: datetime
) -> Registration | Rejection:
    capacity = db.scalar(
        select(Event.capacity)
        .where(Event.id == event_id, Event.date_time > now)
        .with_for_update()
    )
    if capacity is None:
        return Rejection.EVENT_NOT_FOUND_OR_PAST

    existing = db.scalar(
        select(Registration.id).where(
            Registration.event_id == event_id,
            Registration.user_id == user_id,
        )
    )
    if existing is not None:
        return Rejection.ALREADY_REGISTERED

    taken = db.scalar(
        select(func.count(Registration.id)).where(Registration.event_id == event_id)
    ) or 0
    if taken > capacity:
        _invariant_violated(event_id, taken, capacity)
    if taken >= capacity:
        return Rejection.EVENT_FULL

    registration = Registration(event_id=event_id, user_id=user_id)
    db.add(registration)
    db.flush()  # gets registration.id
    db.refresh(registration)
    return registration


def _registration_exists(db: Session, event_id: int, user_id: int) -> bool:
    with translate_store_errors("register"), transaction(db):
        found = db.scalar(
            select(Registration.id).where(
                Registration.event_id == event_id,
                Registration.user_id == user_id,
            )
        )
    return found is not None


def cancel(db: Session, *, event_id: int, user_id: int) -> Registration | Rejection:
    """Delete the user's registration for the event in a single statement."""
    stmt = (
        delete(Registration)
        .where(Registration.event_id == event_id, Registration.user_id == user_id)
        .returning(
            Registration.id,
            Registration.event_id,
            Registration.user_id,
            Registration.registered_at,
        )
        .execution_options(synchronize_session="fetch")
    )
    with translate_store_errors("cancel"), transaction(db):
        row = db.execute(stmt).one_or_none()

    if row is None:
        logger.debug("No registration of user %s for event %s to cancel", user_id, event_id)
        return Rejection.NOT_FOUND

    logger.info(
        "Cancelled registration of user %s for event %s",
        user_id,
        event_id,
        extra={"registration_id": row.id, "event_id": event_id, "user_id": user_id},
    )
    return Registration(
        id=row.id,
        event_id=row.event_id,
        user_id=row.user_id,
        registered_at=row.registered_at,
    )


@retry_transient()
def get_event_stats(db: Session, event_id: int) -> EventStats | Rejection:
    with translate_store_errors("stats"), transaction(db):
        row = db.execute(
            select(
                Event.id,
                Event.capacity,
                func.count(Registration.id).label("total"),
            )
            .outerjoin(Registration, Registration.event_id == Event.id)
            .where(Event.id == event_id)
            .group_by(Event.id, Event.capacity)
        ).one_or_none()

    if row is None:
        return Rejection.NOT_FOUND

    total = int(row.total)
    if total > row.capacity:
        _invariant_violated(event_id, total, row.capacity)

    return EventStats(
        event_id=row.id,
        capacity=row.capacity,
        total_registrations=total,
        remaining_capacity=row.capacity - total,
        percentage_used=percentage_used(total, row.capacity),
    )


def percentage_used(total: int, capacity: int) -> float:
    pct = Decimal(total) * 100 / Decimal(capacity)
    return float(pct.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _invariant_violated(event_id: int, taken: int, capacity: int):
    logger.critical(
        "Capacity invariant violated for event %s: %d registrations, capacity %d",
        event_id, taken, capacity,
        extra={"event_id": event_id},
    )
    raise InvariantViolationError(
        f"Event {event_id} holds {taken} registrations but capacity is {capacity}"
    )
