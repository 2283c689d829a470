"""SQLAlchemy engine and session management."""

import os
import threading
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from kwilt_mcp.config import get_settings
from kwilt_mcp.core.logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()

_engine: Optional[Engine] = None
_session_local: Optional[sessionmaker] = None
_engine_lock = threading.Lock()


def _ensure_sqlite_dir(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    prefix = "sqlite:///"
    if not database_url.startswith(prefix):
        return
    path = database_url[len(prefix):]
    if not path or path == ":memory:":
        return
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def get_engine() -> Engine:
    """Get (or lazily create) the process-wide engine.

    - PostgreSQL: connection pooling with pre-ping
    - SQLite: check_same_thread=False so FastAPI's threadpool can share it
    """
    global _engine, _session_local
    if _engine is not None:
        return _engine
    with _engine_lock:
        if _engine is not None:
            return _engine
        settings = get_settings()
        database_url = settings.effective_database_url
        if not database_url:
            raise RuntimeError("DATABASE_URL is not configured")

        kwargs: dict = {"pool_pre_ping": True}
        if database_url.startswith("sqlite"):
            _ensure_sqlite_dir(database_url)
            kwargs["connect_args"] = {"check_same_thread": False}
        elif database_url.startswith("postgresql"):
            kwargs["pool_size"] = 10
            kwargs["max_overflow"] = 20

        engine = create_engine(database_url, **kwargs)
        _session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        _engine = engine
    return _engine


def get_session_local() -> sessionmaker:
    """Get the session factory bound to the current engine."""
    get_engine()
    return _session_local


def dispose_engine() -> None:
    """Dispose the engine so the next call re-reads settings."""
    global _engine, _session_local
    with _engine_lock:
        if _engine is not None:
            _engine.dispose()
        _engine = None
        _session_local = None


def verify_database_connection() -> bool:
    """Return True when a trivial query succeeds."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, RuntimeError) as exc:
        logger.warning("Database connection check failed", data={"error": str(exc)})
        return False
