"""
Database session management for DraftSwiss.

Provides SQLAlchemy engine and session factory with proper
connection pooling configuration. Uses the settings from config.py.

Usage:
    # As a context manager (recommended for scripts)
    from draftswiss.db import get_session

    with get_session() as session:
        outcome = submit_result(session, match_id, entries)
        # Commits automatically on exit, rolls back on exception

    # As a dependency injection (for FastAPI)
    from draftswiss.db.session import get_db
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from draftswiss.config import settings


def enable_sqlite_savepoints(engine: Engine) -> Engine:
    """
    Make pysqlite honour BEGIN/SAVEPOINT the way server databases do.

    The pysqlite driver manages transactions itself and defers BEGIN,
    which breaks the nested transaction used around round generation.
    Disabling its handling and emitting BEGIN ourselves restores normal
    SAVEPOINT semantics.
    """

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None

    @event.listens_for(engine, "begin")
    def on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def get_engine(url: str | None = None, **kwargs) -> Engine:
    """
    Create SQLAlchemy engine.

    The engine is configured with:
    - Connection pool for server databases (SQLite uses its default pool)
    - Echo mode only when LOG_LEVEL=DEBUG
    - Pre-ping to verify connections before use (handles stale connections)
    """
    url = url or settings.database_url
    options = {
        "echo": settings.log_level == "DEBUG",
        "pool_pre_ping": True,
    }
    if not url.startswith("sqlite"):
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
    options.update(kwargs)

    engine = create_engine(url, **options)
    if url.startswith("sqlite"):
        enable_sqlite_savepoints(engine)
    return engine


# Create the engine (singleton pattern via module-level variable)
_engine = None


def _get_engine() -> Engine:
    """Get or create the singleton engine instance."""
    global _engine
    if _engine is None:
        _engine = get_engine()
    return _engine


# Session factory - creates new sessions bound to our engine
SessionLocal = sessionmaker(
    autocommit=False,  # We'll handle commits explicitly
    autoflush=False,  # Services flush explicitly where ordering matters
    bind=_get_engine(),
)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Automatically commits on successful exit, rolls back on exception.
    This is the recommended way to use sessions in scripts.

    Raises:
        Any exception from the database operation (after rollback)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency injection function for FastAPI.

    Request handlers commit explicitly after a successful operation.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
