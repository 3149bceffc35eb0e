"""Database engine and session management.

Uses SQLAlchemy with SQLite for standalone deployments; any SQLAlchemy URL
(e.g., PostgreSQL) can be configured through DB_URL.
"""

from __future__ import annotations

import logging
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from prediction_tracker.core.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_in_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def create_db_engine(url: str | None = None, *, echo: bool | None = None) -> Engine:
    """Create a database engine for the configured (or given) URL.

    SQLite connections get foreign keys switched on so cascading deletes
    from predictions reach verifications and prediction tags. In-memory
    SQLite shares one connection so every session sees the same data.
    """
    url = url or settings.database.url
    kwargs: dict = {"echo": settings.database.echo if echo is None else echo}

    if _is_sqlite(url):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_in_memory_sqlite(url):
            kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **kwargs)

    if _is_sqlite(url):
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):  # noqa: ARG001
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = create_db_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """Dependency to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create tables that do not exist yet."""
    # Models must be imported so they register on Base.metadata
    from prediction_tracker.db import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("database.initialized", extra={"tables": sorted(Base.metadata.tables)})


def drop_db() -> None:
    """Drop all tables (tests and local resets only)."""
    from prediction_tracker.db import models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
