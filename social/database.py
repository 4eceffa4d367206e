"""
Database utilities and SQLAlchemy session management.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool

logger = logging.getLogger(__name__)

engine: Optional[Engine] = None

SessionLocal = sessionmaker(
    autoflush=False,
    expire_on_commit=False,
)

Base = declarative_base()


def init_engine(config) -> Engine:
    """
    Build the process-wide engine from configuration and bind the session factory.
    Called once by the app factory.
    """
    global engine

    database_url = config.DATABASE_URL
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Required for SQLite when used across multiple worker threads.
        connect_args["check_same_thread"] = False
    elif database_url.startswith("postgresql"):
        # PostgreSQL connection timeout (in seconds)
        connect_args["connect_timeout"] = 10

    if engine is not None:
        engine.dispose()

    engine = create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=0,
        pool_pre_ping=True,
        pool_recycle=config.DB_POOL_RECYCLE,
        pool_timeout=config.DB_POOL_TIMEOUT,
        echo=False,
        connect_args=connect_args,
    )

    if database_url.startswith("sqlite"):
        # SQLite leaves foreign keys off unless asked per connection.
        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    SessionLocal.configure(bind=engine)
    return engine


def init_db() -> None:
    """
    Import models and create tables. Should be invoked once during startup.
    """
    try:
        from social import models  # noqa: F401  (side-effect import)
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Error initializing database: {e}", exc_info=True)
        raise


@contextmanager
def db_session() -> Generator[Session, None, None]:
    """
    Context manager that yields a SQLAlchemy session and guarantees cleanup.

    Everything done inside the block is one transaction: it commits when the
    block exits normally and rolls back when anything raises, so paired
    updates (follow counts, like counts) never land half-applied.
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
