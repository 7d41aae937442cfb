from collections.abc import Iterator

import redis

from app.core.config import get_redis_url


def create_redis_client() -> redis.Redis:
    return redis.from_url(get_redis_url(), decode_responses=True, socket_connect_timeout=2)


def get_redis_client() -> Iterator[redis.Redis]:
    """Per-request Redis client for broker health checks, closed with its pool afterwards."""
    client = create_redis_client()
    try:
        yield client
    finally:
        client.close()
