"""
Database management commands.

    event-registry-db setup   create tables and indexes
    event-registry-db seed    insert sample users, events and registrations
    event-registry-db clean   delete every row, children first
"""
import argparse
import logging
import sys
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.core.exceptions import DuplicateEmailError, Rejection
from app.core.logging_config import setup_logging
from app.database.db import Base, SessionLocal, engine, transaction
from app.models import Event, Registration, User
from app.services.events import create_event
from app.services.registrations import register
from app.services.users import create_user, get_user_by_email

logger = logging.getLogger(__name__)

SAMPLE_USERS = [
    ("John Doe", "john.doe@example.com"),
    ("Jane Smith", "jane.smith@example.com"),
    ("Bob Johnson", "bob.johnson@example.com"),
    ("Alice Brown", "alice.brown@example.com"),
    ("Charlie Wilson", "charlie.wilson@example.com"),
]

# (title, days from now, hour, location, capacity)
SAMPLE_EVENTS = [
    ("Tech Conference", 60, 10, "San Francisco", 100),
    ("Python Workshop", 21, 14, "New York", 50),
    ("AI Summit", 37, 9, "Boston", 200),
    ("Web Development Bootcamp", 14, 16, "Seattle", 75),
    ("Cloud Computing Meetup", 27, 18, "Austin", 30),
]

# (user index, event index)
SAMPLE_REGISTRATIONS = [(0, 0), (1, 0), (0, 1)]


def setup_database() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")


def seed_database(db: Session) -> tuple[list[User], list[Event]]:
    users = []
    for name, email in SAMPLE_USERS:
        try:
            users.append(create_user(db, name=name, email=email))
        except DuplicateEmailError:
            logger.info("User %s already exists, skipping", email)
            users.append(get_user_by_email(db, email))

    today = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
    events = [
        create_event(
            db,
            title=title,
            date_time=(today + timedelta(days=days)).replace(hour=hour),
            location=location,
            capacity=capacity,
        )
        for title, days, hour, location, capacity in SAMPLE_EVENTS
    ]

    for user_idx, event_idx in SAMPLE_REGISTRATIONS:
        outcome = register(db, event_id=events[event_idx].id, user_id=users[user_idx].id)
        if isinstance(outcome, Rejection):
            logger.info("Sample registration skipped: %s", outcome.message)

    logger.info("Seeded %d users and %d events", len(users), len(events))
    return users, events


def clean_database(db: Session) -> None:
    with transaction(db):
        for model in (Registration, Event, User):
            db.execute(delete(model))
    logger.info("All tables emptied")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="event-registry-db", description=__doc__.splitlines()[1])
    parser.add_argument("command", choices=["setup", "seed", "clean"])
    args = parser.parse_args(argv)

    setup_logging()
    if args.command == "setup":
        setup_database()
        return 0

    db = SessionLocal()
    try:
        if args.command == "seed":
            setup_database()
            seed_database(db)
        else:
            clean_database(db)
    except Exception:
        logger.exception("%s failed", args.command)
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
