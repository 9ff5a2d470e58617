"""
Database helpers shared by the PDV services.

The hosted Supabase Postgres is reached through SQLAlchemy; every composite
operation of the services runs inside one `get_session()` scope so it either
commits as a whole or rolls back as a whole.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, scoped_session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from .config import AppConfig
from .errors import ConflictError

logger = logging.getLogger(__name__)

_engine = None
_session_factory: sessionmaker | None = None
_scoped_session: scoped_session | None = None


def init_engine(config: AppConfig):
    """
    Initialize a SQLAlchemy engine and session factory using the given config.

    The engine is stored as a module-level singleton so that every blueprint
    reuses the same connection pool inside a process.
    """
    global _engine, _session_factory, _scoped_session

    if _engine is None:
        database_url = config.sqlalchemy_uri
        engine_kwargs: dict[str, Any] = {
            "pool_pre_ping": True,
            "pool_size": 5,
            "max_overflow": 10,
            "pool_recycle": 1800,  # Supabase pooler drops idle connections
        }

        if database_url.startswith("sqlite"):
            engine_kwargs = {
                "connect_args": {"check_same_thread": False},
                "poolclass": StaticPool,
            }

        _engine = create_engine(database_url, **engine_kwargs)

        @event.listens_for(_engine, "before_cursor_execute")
        def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            conn.info.setdefault("query_start_time", []).append(time.time())

        @event.listens_for(_engine, "after_cursor_execute")
        def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            total = time.time() - conn.info["query_start_time"].pop(-1)
            if total > 1.0:
                logger.warning("Slow query detected (%.2fs): %s...", total, statement[:200])

        _session_factory = sessionmaker(
            bind=_engine, autoflush=False, autocommit=False, expire_on_commit=False
        )
        _scoped_session = scoped_session(_session_factory)

    return _engine


def init_db(metadata) -> None:
    """
    Ensure all tables declared on the provided metadata exist in the database.

    In production the hosted schema already exists and this is a no-op per table.
    """
    if _engine is None:
        raise RuntimeError("Database engine not initialized. Call init_engine first.")

    try:
        metadata.create_all(_engine)
        logger.info("Database schema ready")
    except OperationalError as exc:
        logger.warning("Schema creation warning: %s", exc)


def dispose_engine() -> None:
    """Drop the engine singleton (used by scripts and the test-suite)."""
    global _engine, _session_factory, _scoped_session

    if _scoped_session is not None:
        _scoped_session.remove()
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
    _scoped_session = None


def get_engine():
    if _engine is None:
        raise RuntimeError("Database engine not initialized. Call init_engine first.")
    return _engine


@contextmanager
def get_session() -> Iterator[Session]:
    """
    Provide a transactional scope around a series of operations.

    Yields a session and automatically rolls back when an exception occurs. It
    commits by default and always ensures the session is removed from the scoped
    registry afterwards.
    """
    if _scoped_session is None:
        raise RuntimeError("Session factory unavailable. Call init_engine first.")

    session: Session = _scoped_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        _scoped_session.remove()


@contextmanager
def transactional(
    conflict_message: str = "Registro alterado por outro terminal; recarregue e tente novamente",
) -> Iterator[Session]:
    """
    Same as `get_session()` but reports lost concurrent writes as ConflictError.

    A stale version column (StaleDataError) or a unique index violation
    (IntegrityError) means another terminal got there first; the whole unit of
    work has already been rolled back when the caller sees the error.
    """
    try:
        with get_session() as session:
            yield session
    except StaleDataError as exc:
        logger.warning("Stale write detected: %s", exc)
        raise ConflictError(conflict_message) from exc
    except IntegrityError as exc:
        logger.warning("Integrity conflict: %s", exc.orig)
        raise ConflictError(conflict_message) from exc
