"""
Engine and session handling for the venue database.

One engine per process: the API app and the job runner both call
``init_engine`` at startup and then open units of work with ``get_session``.
"""

from __future__ import annotations

import os
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import AppConfig
from .logging_config import get_logger

logger = get_logger(__name__)

SLOW_QUERY_SECONDS = 1.0

_engine: Engine | None = None
_sessions: scoped_session | None = None


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        # in-memory databases must share one connection across threads
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20, "pool_recycle": 3600}


def _watch_slow_queries(engine: Engine) -> None:
    @event.listens_for(engine, "before_cursor_execute")
    def _start(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("ktv_query_started", []).append(time.perf_counter())

    @event.listens_for(engine, "after_cursor_execute")
    def _finish(conn, cursor, statement, parameters, context, executemany):
        elapsed = time.perf_counter() - conn.info["ktv_query_started"].pop()
        if elapsed > SLOW_QUERY_SECONDS:
            logger.warning(f"Slow query took {elapsed:.2f}s: {statement[:200]}")


def init_engine(config: AppConfig) -> Engine:
    """Create the engine on first call; later calls return the same one."""
    global _engine, _sessions

    if _engine is not None:
        return _engine

    url = os.getenv("DATABASE_URL") or config.sqlalchemy_uri
    _engine = create_engine(url, **_engine_options(url))
    _watch_slow_queries(_engine)
    _sessions = scoped_session(
        sessionmaker(bind=_engine, autoflush=False, expire_on_commit=False)
    )
    return _engine


def dispose_engine() -> None:
    """Drop the engine singleton so the next init_engine builds a fresh one."""
    global _engine, _sessions

    if _sessions is not None:
        _sessions.remove()
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessions = None


def init_db(metadata) -> None:
    """Create any missing tables for ``metadata``."""
    if _engine is None:
        raise RuntimeError("init_engine must run before init_db")

    try:
        metadata.create_all(_engine)
    except OperationalError as exc:
        # another worker may be creating the same tables
        logger.warning(f"Schema creation incomplete: {exc}")
        return
    logger.info("Database schema ready")


@contextmanager
def get_session() -> Iterator[Session]:
    """
    Unit of work: commit on success, roll back on any exception, and always
    release the thread-local session.
    """
    if _sessions is None:
        raise RuntimeError("init_engine must run before get_session")

    session: Session = _sessions()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        _sessions.remove()
