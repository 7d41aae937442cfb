import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import exc as sa_exc

from app.core.exceptions import (
    DuplicateEmailError,
    InvariantViolationError,
    StoreUnavailableError,
)
from app.core.logging_config import setup_logging
from app.database.db import Base, engine
from app.routes import events, health, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    # Create all tables (in production, run `event-registry-db setup` or migrations)
    Base.metadata.create_all(bind=engine)
    logger.info("Event registry API started")
    yield
    engine.dispose()
    logger.info("Event registry API stopped")


app = FastAPI(title="Event Registry", lifespan=lifespan)

# Configure CORS
origins = [
    "*"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    logger.info(
        "%s %s -> %s (%.2fms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
        extra={"path": request.url.path, "status_code": response.status_code, "duration_ms": duration_ms},
    )
    return response


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.warning("Store unavailable on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable"})


# Store faults raised outside the services (e.g. the user lookup at the route boundary)
@app.exception_handler(sa_exc.TimeoutError)
@app.exception_handler(sa_exc.OperationalError)
@app.exception_handler(sa_exc.DisconnectionError)
async def store_error_handler(request: Request, exc: sa_exc.SQLAlchemyError):
    logger.warning("Database fault on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable"})


@app.exception_handler(InvariantViolationError)
async def invariant_violation_handler(request: Request, exc: InvariantViolationError):
    logger.critical("Invariant violation on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.exception_handler(DuplicateEmailError)
async def duplicate_email_handler(request: Request, exc: DuplicateEmailError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


# Include the routers
app.include_router(health.router)
app.include_router(events.router)
app.include_router(users.router)
