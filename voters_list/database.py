from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from .config import settings


def _is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def _is_sqlite_memory(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:")


def _ensure_sqlite_dir(database_url: str) -> None:
    """
    Ensure the parent folder exists for SQLite file-based DB URLs like:
      sqlite:///./data/voters.sqlite
      sqlite:////absolute/path/to/db.sqlite
    """
    if not database_url.startswith("sqlite:///") or _is_sqlite_memory(database_url):
        return

    path = database_url.replace("sqlite:///", "", 1)
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)


def _sqlite_pragmas(engine: Engine) -> None:
    """
    foreign_keys must be on so voters.monitor_id is enforced like it is in Postgres.
    """

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.execute("PRAGMA busy_timeout=5000;")
        cursor.close()


def get_engine(database_url: Optional[str] = None) -> Engine:
    """
    Create and return the SQLAlchemy engine.

    - Uses settings.resolved_database_url unless a URL is passed in
    - SQLite gets pragmas + check_same_thread=False for FastAPI's threadpool
    - In-memory SQLite shares one connection (StaticPool) so every thread sees the same tables
    """
    database_url = database_url or settings.resolved_database_url

    kwargs = {}
    if _is_sqlite(database_url):
        _ensure_sqlite_dir(database_url)
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_sqlite_memory(database_url):
            kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, echo=False, pool_pre_ping=True, **kwargs)

    if _is_sqlite(database_url):
        _sqlite_pragmas(engine)

    return engine


# Single, shared engine for the app process
engine: Engine = get_engine()


def register_models() -> None:
    """
    Central place to import ALL models so SQLModel registers them.
    """
    from .models.monitor import Monitor, MonitorSession  # noqa: F401
    from .models.voter import Voter  # noqa: F401


def init_db(bind: Optional[Engine] = None, create_tables: bool = True) -> None:
    """
    Register models, then create missing tables.
    Non-destructive: create_all will not drop or alter existing tables.
    """
    register_models()
    if create_tables:
        SQLModel.metadata.create_all(bind or engine)


@contextmanager
def session_scope(bind: Optional[Engine] = None) -> Generator[Session, None, None]:
    """
    Context manager with commit/rollback safety.

    Usage:
        with session_scope() as db:
            db.add(...)
    """
    session = Session(bind or engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
