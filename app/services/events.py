import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.clock import as_utc, utcnow
from app.core.exceptions import translate_store_errors
from app.core.retry import retry_transient
from app.database.db import transaction
from app.models.events import Event
from app.models.registrations import Registration
from app.models.users import User

logger = logging.getLogger(__name__)

RECENT_EVENTS_WINDOW = timedelta(days=30)


@dataclass(frozen=True)
class EventSummary:
    id: int
    title: str
    date_time: datetime
    location: str
    capacity: int
    registration_count: int


def create_event(db: Session, *, title: str, date_time: datetime, location: str, capacity: int) -> Event:
    event = Event(title=title, date_time=as_utc(date_time), location=location, capacity=capacity)
    with translate_store_errors("create_event"), transaction(db):
        db.add(event)
        db.flush()
        db.refresh(event)
    logger.info("Created event %s (%r, capacity %d)", event.id, event.title, event.capacity)
    return event


def get_event(db: Session, event_id: int) -> Event | None:
    return db.get(Event, event_id)


def get_event_with_registrations(db: Session, event_id: int) -> dict | None:
    """Event fields plus the registered users, earliest registration first."""
    event = db.get(Event, event_id)
    if not event:
        return None

    rows = db.execute(
        select(User.id, User.name, User.email, Registration.registered_at)
        .join(Registration, Registration.user_id == User.id)
        .where(Registration.event_id == event_id)
        .order_by(Registration.registered_at, Registration.id)
    ).all()

    return {
        "id": event.id,
        "title": event.title,
        "date_time": event.date_time,
        "location": event.location,
        "capacity": event.capacity,
        "registrations": [row._asdict() for row in rows],
    }


@retry_transient()
def list_upcoming_events(db: Session, now: datetime | None = None) -> list[EventSummary]:
    """Future events with their registration counts, by start time then location."""
    now = as_utc(now) if now else utcnow()
    count = func.count(Registration.id).label("registration_count")
    stmt = (
        select(Event.id, Event.title, Event.date_time, Event.location, Event.capacity, count)
        .outerjoin(Registration, Registration.event_id == Event.id)
        .where(Event.date_time > now)
        .group_by(Event.id, Event.title, Event.date_time, Event.location, Event.capacity)
        .order_by(Event.date_time.asc(), Event.location.asc())
    )
    with translate_store_errors("list_upcoming_events"), transaction(db):
        rows = db.execute(stmt).all()
    return [EventSummary(**row._asdict()) for row in rows]


def list_recent_user_events(db: Session, user_id: int, now: datetime | None = None) -> list[Event]:
    """Events the user is registered for that took place in the last 30 days."""
    now = as_utc(now) if now else utcnow()
    stmt = (
        select(Event)
        .join(Registration, Registration.event_id == Event.id)
        .where(
            Registration.user_id == user_id,
            Event.date_time >= now - RECENT_EVENTS_WINDOW,
            Event.date_time <= now,
        )
        .order_by(Event.date_time.asc())
    )
    return list(db.scalars(stmt))


def delete_event(db: Session, event_id: int) -> bool:
    """Remove an event; the database cascades its registrations in the same statement."""
    with transaction(db):
        event = db.get(Event, event_id)
        if not event:
            return False
        db.delete(event)
    logger.info("Deleted event %s", event_id)
    return True
