import os
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

# Keep the application's own engine off disk; tests bind their own per-test database
os.environ.setdefault("DATABASE_URL", "sqlite://")

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from app.core.redis_client import get_redis_client
from app.database.db import Base, create_db_engine, get_db
from app.main import app
from app.models import Event, User


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite so concurrent sessions get separate connections."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    db: Session = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def confirmation_queue():
    with patch("app.routes.events.enqueue_registration_confirmation") as enqueue:
        yield enqueue


@pytest.fixture
def client(session_factory, fake_redis, confirmation_queue):
    def override_get_db():
        db: Session = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis_client] = lambda: fake_redis
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def future(days: float = 7) -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=days)


def past(days: float = 1) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=days)


@pytest.fixture
def make_event(db_session: Session):
    def _make_event(capacity: int = 10, date_time: datetime | None = None,
                    location: str = "Berlin", title: str = "Meetup") -> Event:
        event = Event(title=title, date_time=date_time or future(), location=location, capacity=capacity)
        db_session.add(event)
        db_session.commit()
        return event

    return _make_event


@pytest.fixture
def make_users(db_session: Session):
    counter = {"n": 0}

    def _make_users(count: int = 1) -> list[User]:
        users = []
        for _ in range(count):
            counter["n"] += 1
            users.append(User(name=f"User {counter['n']}", email=f"user{counter['n']}@example.com"))
        db_session.add_all(users)
        db_session.commit()
        return users

    return _make_users
