"""
Test the database management commands.
"""
from unittest.mock import patch

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.database import manage
from app.models import Event, Registration, User


def count(db: Session, model) -> int:
    total = db.scalar(select(func.count()).select_from(model))
    db.rollback()
    return total


def test_seed_creates_sample_data(db_session: Session):
    users, events = manage.seed_database(db_session)

    assert len(users) == len(manage.SAMPLE_USERS)
    assert len(events) == len(manage.SAMPLE_EVENTS)
    assert count(db_session, Registration) == len(manage.SAMPLE_REGISTRATIONS)


def test_seed_is_idempotent_on_users(db_session: Session):
    manage.seed_database(db_session)
    users, _ = manage.seed_database(db_session)

    assert count(db_session, User) == len(manage.SAMPLE_USERS)
    assert [u.email for u in users] == [email for _, email in manage.SAMPLE_USERS]


def test_clean_empties_tables(db_session: Session):
    manage.seed_database(db_session)

    manage.clean_database(db_session)

    assert count(db_session, Registration) == 0
    assert count(db_session, Event) == 0
    assert count(db_session, User) == 0


def test_main_dispatches_clean(engine, session_factory):
    with patch.object(manage, "SessionLocal", session_factory), \
            patch.object(manage, "setup_logging"):
        assert manage.main(["clean"]) == 0


def test_main_setup_creates_tables(engine):
    with patch.object(manage, "engine", engine), patch.object(manage, "setup_logging"):
        assert manage.main(["setup"]) == 0
