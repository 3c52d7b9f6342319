"""
Database session management. SQLAlchemy 2.x style.

All lifecycle writes go through ``transaction(db)``: one unit of work that
either commits as a whole or rolls back as a whole.
"""

from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from ideahub.config import Settings, get_settings


def _engine_kwargs(settings: Settings) -> dict:
    if settings.is_sqlite:
        # File databases are shared across threads in tests; writers wait on the lock
        return {
            "echo": settings.debug,
            "connect_args": {"check_same_thread": False, "timeout": 30},
        }
    return {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "echo": settings.debug,
        "connect_args": {
            "connect_timeout": settings.db_connect_timeout,
            "options": "-c timezone=UTC",
        },
    }


settings = get_settings()
engine = create_engine(settings.database_url, **_engine_kwargs(settings))

if settings.is_sqlite:

    @event.listens_for(engine, "connect")
    def _sqlite_on_connect(dbapi_connection, connection_record) -> None:
        # Hand transaction control to the "begin" hook below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _sqlite_on_begin(conn) -> None:
        # SQLite ignores FOR UPDATE; taking the write lock up front serializes writers instead
        conn.exec_driver_sql("BEGIN IMMEDIATE")


SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""


def check_db_connection() -> None:
    """
    Verify database connectivity. Raises if unreachable.
    Call during application startup.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Scope a unit of work on ``db``.

    Commits when the block exits normally. Any exception raised inside the
    block (or by the commit itself) rolls the whole unit back and propagates
    unchanged, so callers never observe a partially applied write.
    """
    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise
