import logging
from datetime import datetime, timezone

import redis
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.redis_client import get_redis_client
from app.database.db import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db), redis_client: redis.Redis = Depends(get_redis_client)):
    database_ok = True
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        database_ok = False

    redis_ok = True
    try:
        redis_client.ping()
    except redis.exceptions.RedisError:
        logger.warning("Health check: redis unreachable", exc_info=True)
        redis_ok = False

    body = {
        "status": "ok" if database_ok else "unavailable",
        "database": "ok" if database_ok else "unavailable",
        # Redis only carries confirmations, the API keeps serving without it
        "redis": "ok" if redis_ok else "unavailable",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return JSONResponse(status_code=200 if database_ok else 503, content=body)
