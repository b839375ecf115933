"""Engine and session access for the expense store.

One engine is bound per process. The CLI passes the URL resolved by
``expense_tracker.config``; tests pass a temporary SQLite file and call
:func:`dispose_engine` between cases. Without an explicit URL the
``DATABASE_URL`` environment variable is used.

SQLite connections get ``PRAGMA foreign_keys = ON`` so expenses can never
point at a missing category.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

_ENGINE: Engine | None = None
_SESSION_MAKER: sessionmaker[Session] | None = None
_DB_URL: str | None = None


def _resolve_url(database_url: str | None) -> str:
    url = database_url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("no database URL given and DATABASE_URL is not set")
    return url


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _record):  # pragma: no cover - driver hook
        dbapi_conn.execute("PRAGMA foreign_keys = ON")


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the process-wide engine, creating it on first use.

    Asking for a different URL while an engine is bound is an error; call
    :func:`dispose_engine` first.
    """

    global _ENGINE, _SESSION_MAKER, _DB_URL
    url = _resolve_url(database_url)
    if _ENGINE is not None:
        if url != _DB_URL:
            raise RuntimeError(
                f"engine already bound to {_DB_URL!r}; dispose_engine() before using {url!r}"
            )
        return _ENGINE

    engine = create_engine(url, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_foreign_keys(engine)
    # Repository callers read objects back after save(); keep them loaded.
    _SESSION_MAKER = sessionmaker(bind=engine, expire_on_commit=False)
    _ENGINE, _DB_URL = engine, url
    return engine


def get_session(*, database_url: str | None = None) -> Session:
    get_engine(database_url=database_url)
    assert _SESSION_MAKER is not None
    return _SESSION_MAKER()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Yield a session that commits on normal exit and rolls back on error."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def dispose_engine() -> None:
    global _ENGINE, _SESSION_MAKER, _DB_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = _SESSION_MAKER = _DB_URL = None


__all__ = ["dispose_engine", "get_engine", "get_session", "session_scope"]
