"""Engine and session factory backing the AI invocation audit store.

Every capability call made through :class:`~app.ai.service.AIService` may
leave one ``invocation_audits`` row; this module owns where those rows live.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import sessionmaker

from .config import PROJECT_ROOT, settings
from .models import Base


def _resolve_audit_url(database_url: str) -> tuple[URL, dict[str, Any]]:
    """Anchor relative SQLite audit files at the project root.

    Audit writes happen on worker threads, so SQLite connections must not be
    pinned to the thread that opened them.
    """

    url: URL = make_url(database_url)
    if not url.drivername.startswith("sqlite"):
        return url, {}

    database = url.database
    if database and database not in {":memory:", ""}:
        audit_path = Path(database)
        if not audit_path.is_absolute():
            audit_path = (PROJECT_ROOT / audit_path).resolve()
        audit_path.parent.mkdir(parents=True, exist_ok=True)
        url = url.set(database=str(audit_path))
    return url, {"check_same_thread": False}


def _initialise_audit_engine(database_url: str) -> Engine:
    """Create the audit engine and make sure the audit table exists."""

    url, connect_args = _resolve_audit_url(database_url)
    engine_kwargs: dict[str, Any] = {"future": True, "echo": False}
    if connect_args:
        engine_kwargs["connect_args"] = connect_args

    engine = create_engine(url, **engine_kwargs)
    Base.metadata.create_all(engine)
    return engine


engine = _initialise_audit_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_session():
    """Yield an audit store session for the lifetime of one request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
