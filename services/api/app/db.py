"""Database session and connectivity helpers for the API service.

This module centralizes SQLAlchemy engine/session construction and provides the
FastAPI dependency (`get_db`) used by route handlers.

Design goals:
- single source of truth for the database URL (`Settings.database_url`)
- short-lived, request-scoped DB sessions
- safe teardown/rollback on errors
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import sessionmaker

from libs.common_python.common.db import make_engine

from .settings import get_settings

engine = make_engine(get_settings().database_url)
SessionLocal = sessionmaker(bind=engine)


def get_db():
    """FastAPI dependency that yields a request-scoped SQLAlchemy session.

    Route handlers declare `db: Session = Depends(get_db)` to receive a session
    bound to the API service engine.

    Yields:
        sqlalchemy.orm.Session: An open SQLAlchemy session for the duration of the request.

    Notes:
        A new session is created per request and is always closed in `finally`.
        Transaction boundaries are controlled by the handler (`db.commit()`).
        If the handler raises, the session is rolled back before the exception
        propagates so the connection returns to the pool in a clean state.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def new_id() -> str:
    """Primary keys are UUID4 strings generated application-side."""
    return str(uuid.uuid4())


def utcnow() -> str:
    """Current UTC time as an ISO-8601 string (the stored timestamp format)."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def to_iso(value: datetime) -> str:
    """Format a datetime the same way `utcnow()` does."""
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
