import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine, StaticPool, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from app.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def create_db_engine(url: str | None = None, settings: Settings | None = None) -> Engine:
    """
    Build the engine with a bounded pool and a per-statement timeout.

    PostgreSQL gets ``statement_timeout`` as a connection option. SQLite gets the
    same budget as its busy timeout, foreign keys switched on, and every
    transaction opened with BEGIN IMMEDIATE so writers are serialized.
    """
    settings = settings or get_settings()
    url = url or settings.DATABASE_URL
    timeout_ms = settings.DB_STATEMENT_TIMEOUT_MS

    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": timeout_ms / 1000}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            engine = create_engine(
                url, connect_args=connect_args, poolclass=StaticPool, echo=settings.DB_ECHO
            )
        else:
            engine = create_engine(
                url,
                connect_args=connect_args,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                echo=settings.DB_ECHO,
            )
        _configure_sqlite(engine)
        return engine

    connect_args = {}
    if url.startswith("postgresql"):
        connect_args["options"] = f"-c statement_timeout={timeout_ms}"

    return create_engine(
        url,
        connect_args=connect_args,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
        echo=settings.DB_ECHO,
    )


def _configure_sqlite(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself instead of pysqlite's deferred BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = create_db_engine()
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Run a block as one all-or-nothing unit.

    Joins the transaction the session already autobegan (e.g. after a user
    lookup at the HTTP boundary) and commits it, otherwise begins a new one.
    """
    if db.in_transaction():
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
    else:
        with db.begin():
            yield db
