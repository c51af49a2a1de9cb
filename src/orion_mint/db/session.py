"""Database session configuration."""

from __future__ import annotations

import math
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from orion_mint.core.errors import StoreUnavailable
from orion_mint.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import orion_mint.models  # noqa: E402,F401


def engine_options(url: str, timeout_seconds: float) -> dict[str, Any]:
    """Return dialect-specific engine options bounding every store call.

    Args:
        url: SQLAlchemy database URL.
        timeout_seconds: Upper bound for acquiring a connection or lock.
    """
    options: dict[str, Any] = {"pool_pre_ping": True}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False, "timeout": timeout_seconds}
        return options

    options["pool_timeout"] = timeout_seconds
    if url.startswith("postgresql"):
        options["connect_args"] = {
            "connect_timeout": max(1, math.ceil(timeout_seconds)),
            "options": f"-c statement_timeout={int(timeout_seconds * 1000)}",
        }
    return options


def _use_immediate_transactions(engine: Engine) -> None:
    """Make SQLite take the write lock at BEGIN.

    pysqlite defers BEGIN and upgrades locks mid-transaction, which fails
    immediately under write contention instead of waiting for the busy timeout.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record) -> None:  # pragma: no cover - driver hook
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn) -> None:  # pragma: no cover - driver hook
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, timeout_seconds: float | None = None, echo: bool = False) -> Engine:
    """Create an engine for ``url`` with the configured store timeout."""
    timeout = settings.store_timeout_seconds if timeout_seconds is None else timeout_seconds
    engine = create_engine(url, echo=echo, **engine_options(url, timeout))
    if url.startswith("sqlite"):
        _use_immediate_transactions(engine)
    return engine


engine = build_engine(settings.effective_database_url, echo=settings.sql_debug)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def get_session_factory() -> sessionmaker[Session]:
    """Return the session factory used by the store components."""
    return SessionLocal


@contextmanager
def store_guard(operation: str) -> Iterator[None]:
    """Translate driver and pool failures into ``StoreUnavailable``."""
    try:
        yield
    except (sa_exc.OperationalError, sa_exc.InterfaceError, sa_exc.TimeoutError) as err:
        raise StoreUnavailable(f"Store unavailable during {operation}") from err


def create_tables(bind: Engine | None = None) -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=bind or engine)


def drop_tables(bind: Engine | None = None) -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=bind or engine)
