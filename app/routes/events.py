from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session

from app.core.exceptions import Rejection
from app.database.db import get_db
from app.schemas.events import (
    EventCreate,
    EventDetailOut,
    EventOut,
    EventStatsOut,
    EventSummaryOut,
)
from app.schemas.registrations import RegistrationOut, RegistrationRequest
from app.services import events as event_service
from app.services.registrations import cancel, get_event_stats, register
from app.services.users import get_user
from app.tasks import enqueue_registration_confirmation

router = APIRouter(prefix="/events", tags=["events"])

REJECTION_STATUS = {
    Rejection.EVENT_NOT_FOUND_OR_PAST: status.HTTP_400_BAD_REQUEST,
    Rejection.ALREADY_REGISTERED: status.HTTP_409_CONFLICT,
    Rejection.EVENT_FULL: status.HTTP_409_CONFLICT,
    Rejection.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


def _reject(rejection: Rejection):
    raise HTTPException(status_code=REJECTION_STATUS[rejection], detail=rejection.message)


def _require_user(db: Session, user_id: int) -> None:
    if not get_user(db, user_id):
        raise HTTPException(status_code=404, detail="User not found")


@router.get("", response_model=list[EventSummaryOut])
def list_upcoming(db: Session = Depends(get_db)):
    return event_service.list_upcoming_events(db)


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db)):
    return event_service.create_event(
        db,
        title=payload.title,
        date_time=payload.date_time,
        location=payload.location,
        capacity=payload.capacity,
    )


@router.get("/{event_id}", response_model=EventDetailOut)
def event_details(event_id: int = Path(ge=1), db: Session = Depends(get_db)):
    event = event_service.get_event_with_registrations(db, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.post("/{event_id}/register", response_model=RegistrationOut, status_code=status.HTTP_201_CREATED)
def register_for_event(
    payload: RegistrationRequest,
    event_id: int = Path(ge=1),
    db: Session = Depends(get_db),
):
    _require_user(db, payload.user_id)

    outcome = register(db, event_id=event_id, user_id=payload.user_id)
    if isinstance(outcome, Rejection):
        _reject(outcome)

    # confirmation goes out only after the seat is committed
    enqueue_registration_confirmation(outcome.id)
    return outcome


@router.delete("/{event_id}/register", response_model=RegistrationOut)
def cancel_registration(
    payload: RegistrationRequest,
    event_id: int = Path(ge=1),
    db: Session = Depends(get_db),
):
    _require_user(db, payload.user_id)

    outcome = cancel(db, event_id=event_id, user_id=payload.user_id)
    if isinstance(outcome, Rejection):
        _reject(outcome)
    return outcome


@router.get("/{event_id}/stats", response_model=EventStatsOut)
def event_stats(event_id: int = Path(ge=1), db: Session = Depends(get_db)):
    stats = get_event_stats(db, event_id)
    if isinstance(stats, Rejection):
        raise HTTPException(status_code=404, detail="Event not found")
    return stats
