"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from mentorhub.core.config import settings

logger = logging.getLogger(__name__)

_DEFAULT_POOL_KWARGS: dict[str, Any] = {
    "pool_size": 5,
    "max_overflow": 10,
    "pool_timeout": 5,
    "pool_recycle": 300,
    "pool_pre_ping": True,
    "future": True,
}


def build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Engine options for the given URL; SQLite gets a thread-shareable, lock-tolerant setup."""

    if db_url.startswith("sqlite"):
        return {
            "future": True,
            "connect_args": {"check_same_thread": False, "timeout": 30},
        }
    return dict(_DEFAULT_POOL_KWARGS)


def create_app_engine(db_url: str) -> Engine:
    created = create_engine(db_url, **build_engine_kwargs(db_url))
    if created.dialect.name == "sqlite":
        event.listen(created, "connect", _configure_sqlite_connection)
        event.listen(created, "begin", _begin_immediate)
    return created


def _configure_sqlite_connection(dbapi_connection: Any, connection_record: Any) -> None:
    # Hand transaction control to SQLAlchemy so SAVEPOINT and BEGIN behave.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_immediate(conn: Any) -> None:
    # Take the write lock up front; deferred upgrades deadlock under concurrent writers.
    conn.exec_driver_sql("BEGIN IMMEDIATE")


engine: Engine = create_app_engine(settings.database_url)


# Log pool events for monitoring
@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now()
    logger.debug("Database connection established")


@event.listens_for(engine, "checkout")
def receive_checkout(dbapi_connection: Any, connection_record: Any, connection_proxy: Any) -> None:
    logger.debug("Connection checked out from pool")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Create all tables for the registered models."""
    import mentorhub.models  # noqa: F401

    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info("Database schema ensured", extra={"dialect": target.dialect.name})


__all__ = [
    "Base",
    "SessionLocal",
    "build_engine_kwargs",
    "create_app_engine",
    "engine",
    "get_db",
    "init_db",
]
