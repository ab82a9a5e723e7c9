"""Password hashing, session tokens and the authentication dependencies.

Passwords are hashed with bcrypt. Sessions are opaque random tokens handed to
the client once; only their SHA-256 digest is stored, so a leaked `sessions`
table cannot be replayed.

Route handlers depend on:

- `get_current_user`: any authenticated user (401 otherwise)
- `require_coach` / `require_player`: the user plus the matching profile row
  (403 for the other role)
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import Depends, Header, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from .db import get_db, to_iso, utcnow
from .settings import get_settings

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("stored password hash is malformed")
        return False


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(db: Session, user_id: str) -> dict:
    """Insert a new session row and return the raw token (shown once).

    The caller commits.
    """
    token = secrets.token_urlsafe(32)
    expires_at = to_iso(datetime.now(timezone.utc) + timedelta(hours=get_settings().session_ttl_hours))
    db.execute(
        text("""
            INSERT INTO sessions (token_hash, user_id, created_at, expires_at)
            VALUES (:token_hash, :user_id, :created_at, :expires_at)
        """),
        {"token_hash": hash_token(token), "user_id": user_id, "created_at": utcnow(), "expires_at": expires_at},
    )
    return {"access_token": token, "token_type": "bearer", "expires_at": expires_at}


def create_reset_token(db: Session, user_id: str) -> str:
    token = secrets.token_urlsafe(32)
    expires_at = to_iso(datetime.now(timezone.utc) + timedelta(minutes=get_settings().reset_token_ttl_minutes))
    db.execute(
        text("""
            INSERT INTO password_resets (token_hash, user_id, created_at, expires_at, used)
            VALUES (:token_hash, :user_id, :created_at, :expires_at, :used)
        """),
        {
            "token_hash": hash_token(token),
            "user_id": user_id,
            "created_at": utcnow(),
            "expires_at": expires_at,
            "used": False,
        },
    )
    return token


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Not authenticated")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Invalid authorization header")
    return token.strip()


def get_current_user(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> dict:
    """FastAPI dependency resolving the bearer token to a user row.

    Returns:
        dict: `{id, email, role, sport, token_hash}`.

    Raises:
        HTTPException: 401 when the header is missing, malformed, unknown or expired.
    """
    token_hash = hash_token(_bearer_token(authorization))
    row = db.execute(
        text("""
            SELECT u.id, u.email, u.role, u.sport, s.token_hash
            FROM sessions s
            JOIN users u ON u.id = s.user_id
            WHERE s.token_hash = :token_hash
              AND s.expires_at > :now
        """),
        {"token_hash": token_hash, "now": utcnow()},
    ).mappings().first()

    if not row:
        raise HTTPException(status_code=401, detail="Session expired or invalid")
    return dict(row)


def require_coach(user: dict = Depends(get_current_user), db: Session = Depends(get_db)) -> dict:
    """Authenticated coach; adds `coach_id` to the user dict."""
    if user["role"] != "coach":
        raise HTTPException(status_code=403, detail="Coach account required")
    coach = db.execute(
        text("SELECT id FROM coaches WHERE user_id = :user_id"),
        {"user_id": user["id"]},
    ).mappings().first()
    if not coach:
        raise HTTPException(status_code=403, detail="Coach profile not found")
    return {**user, "coach_id": coach["id"]}


def require_player(user: dict = Depends(get_current_user), db: Session = Depends(get_db)) -> dict:
    """Authenticated player; adds `player_id` to the user dict."""
    if user["role"] != "player":
        raise HTTPException(status_code=403, detail="Player account required")
    player = db.execute(
        text("SELECT id FROM players WHERE user_id = :user_id"),
        {"user_id": user["id"]},
    ).mappings().first()
    if not player:
        raise HTTPException(status_code=403, detail="Player profile not found")
    return {**user, "player_id": player["id"]}
