"""
Concurrent registration attempts against the same event.

Each worker uses its own session (and so its own pooled connection), the way
request handlers do. The store's locking has to serialize the capacity check
and the insert; nothing in-process does.
"""
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from app.core.exceptions import Rejection
from app.models.registrations import Registration
from app.services.registrations import cancel, get_event_stats, register


def attempt(session_factory, event_id: int, user_id: int):
    db = session_factory()
    try:
        return register(db, event_id=event_id, user_id=user_id)
    finally:
        db.close()


def run_concurrently(session_factory, event_id: int, user_ids: list[int]):
    with ThreadPoolExecutor(max_workers=len(user_ids)) as executor:
        futures = [executor.submit(attempt, session_factory, event_id, uid) for uid in user_ids]
        return [f.result() for f in futures]


def registrations_for(session_factory, event_id: int) -> int:
    db = session_factory()
    try:
        return db.scalar(select(func.count(Registration.id)).where(Registration.event_id == event_id))
    finally:
        db.close()


def test_capacity_two_three_contenders(session_factory, make_event, make_users):
    event = make_event(capacity=2)
    users = make_users(3)

    results = run_concurrently(session_factory, event.id, [u.id for u in users])

    successes = [r for r in results if isinstance(r, Registration)]
    rejections = [r for r in results if isinstance(r, Rejection)]
    assert len(successes) == 2
    assert rejections == [Rejection.EVENT_FULL]

    db = session_factory()
    try:
        stats = get_event_stats(db, event.id)
    finally:
        db.close()
    assert stats.total_registrations == 2
    assert stats.remaining_capacity == 0
    assert stats.percentage_used == 100.0


@pytest.mark.parametrize("capacity,contenders", [(1, 10), (5, 12)])
def test_never_oversold(session_factory, make_event, make_users, capacity, contenders):
    event = make_event(capacity=capacity)
    users = make_users(contenders)

    results = run_concurrently(session_factory, event.id, [u.id for u in users])

    successes = [r for r in results if isinstance(r, Registration)]
    assert len(successes) == capacity
    assert results.count(Rejection.EVENT_FULL) == contenders - capacity
    assert registrations_for(session_factory, event.id) == capacity


def test_last_seat_contended(session_factory, make_event, make_users):
    """N contenders for N-1 remaining seats: exactly one loses."""
    event = make_event(capacity=5)
    users = make_users(6)
    db = session_factory()
    try:
        register(db, event_id=event.id, user_id=users[0].id)
        register(db, event_id=event.id, user_id=users[1].id)
    finally:
        db.close()

    # 3 seats left, 4 contenders
    results = run_concurrently(session_factory, event.id, [u.id for u in users[2:]])

    assert sum(isinstance(r, Registration) for r in results) == 3
    assert results.count(Rejection.EVENT_FULL) == 1
    assert registrations_for(session_factory, event.id) == 5


def test_same_user_concurrently(session_factory, make_event, make_users):
    event = make_event(capacity=10)
    (user,) = make_users(1)

    results = run_concurrently(session_factory, event.id, [user.id] * 5)

    assert sum(isinstance(r, Registration) for r in results) == 1
    assert results.count(Rejection.ALREADY_REGISTERED) == 4
    assert registrations_for(session_factory, event.id) == 1


def test_concurrent_register_and_cancel(session_factory, make_event, make_users):
    event = make_event(capacity=3)
    users = make_users(8)
    seed = session_factory()
    try:
        for user in users[:3]:
            register(seed, event_id=event.id, user_id=user.id)
    finally:
        seed.close()

    def cancel_one(user_id: int):
        db = session_factory()
        try:
            return cancel(db, event_id=event.id, user_id=user_id)
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=8) as executor:
        cancels = [executor.submit(cancel_one, u.id) for u in users[:3]]
        registers = [executor.submit(attempt, session_factory, event.id, u.id) for u in users[3:]]
        cancelled = [f.result() for f in cancels]
        registered = [f.result() for f in registers]

    assert all(isinstance(r, Registration) for r in cancelled)
    admitted = sum(isinstance(r, Registration) for r in registered)
    assert admitted <= 3
    assert registrations_for(session_factory, event.id) == admitted


def test_concurrent_api_registrations(client: TestClient, make_event, make_users):
    event = make_event(capacity=3)
    users = make_users(10)

    def register_via_api(user_id: int) -> int:
        response = client.post(f"/events/{event.id}/register", json={"user_id": user_id})
        return response.status_code

    with ThreadPoolExecutor(max_workers=10) as executor:
        statuses = list(executor.map(register_via_api, [u.id for u in users]))

    assert statuses.count(201) == 3
    assert statuses.count(409) == 7

    stats = client.get(f"/events/{event.id}/stats").json()
    assert stats["total_registrations"] == 3
    assert stats["remaining_capacity"] == 0
    assert stats["percentage_used"] == 100.0
