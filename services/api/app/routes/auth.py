"""Authentication routes.

Accounts are email + password (bcrypt). Signing up creates the user, the
matching `players` or `coaches` profile row and a first session in one
transaction. Session tokens are returned once and sent back as
`Authorization: Bearer <token>`.

Login and signup share the AUTH rate limit; the password reset request uses
the stricter EMAIL limit.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..accounts import EmailTakenError, create_account
from ..db import get_db, utcnow
from ..rate_limit import RATE_LIMITS, rate_limited
from ..schemas import ForgotPasswordIn, LoginIn, ResetPasswordIn, SignupIn
from ..security import (
    create_reset_token,
    create_session,
    get_current_user,
    hash_password,
    hash_token,
    verify_password,
)
from ..settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_auth_limit = Depends(rate_limited(RATE_LIMITS["auth"], "auth"))
_email_limit = Depends(rate_limited(RATE_LIMITS["email"], "email"))


def _profile_id(db: Session, user_id: str, role: str) -> str | None:
    table = "players" if role == "player" else "coaches"
    row = db.execute(
        text(f"SELECT id FROM {table} WHERE user_id = :user_id"),
        {"user_id": user_id},
    ).mappings().first()
    return row["id"] if row else None


@router.post("/signup", status_code=201, dependencies=[_auth_limit])
def signup(payload: SignupIn, db: Session = Depends(get_db)):
    """Create an account, its profile row and a session.

    Returns:
        dict: `{ "ok": true, "user": {...}, "session": {access_token, token_type, expires_at} }`.

    Raises:
        HTTPException: 409 if the email is already registered.
    """
    try:
        account = create_account(
            db,
            payload.email,
            payload.password,
            payload.role,
            payload.sport,
            payload.first_name,
            payload.last_name,
        )
    except EmailTakenError:
        raise HTTPException(status_code=409, detail="An account with this email already exists") from None

    session = create_session(db, account["id"])
    db.commit()

    logger.info("user signed up", extra={"user_id": account["id"], "role": payload.role, "sport": payload.sport})
    return {"ok": True, "user": account, "session": session}


@router.post("/login", dependencies=[_auth_limit])
def login(payload: LoginIn, db: Session = Depends(get_db)):
    """Exchange email + password for a session token.

    Unknown email and wrong password return the same 401 so the endpoint
    cannot be used to find out which emails have accounts.
    """
    user = db.execute(
        text("SELECT id, email, password_hash, role, sport FROM users WHERE LOWER(email) = :email"),
        {"email": payload.email.lower()},
    ).mappings().first()

    if not user or not verify_password(payload.password, user["password_hash"]):
        logger.info("failed login attempt")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    session = create_session(db, user["id"])
    db.execute(
        text("UPDATE users SET last_login_at = :now WHERE id = :id"),
        {"now": utcnow(), "id": user["id"]},
    )
    db.commit()

    return {
        "ok": True,
        "user": {
            "id": user["id"],
            "email": user["email"],
            "role": user["role"],
            "sport": user["sport"],
            "profile_id": _profile_id(db, user["id"], user["role"]),
        },
        "session": session,
    }


@router.post("/logout")
def logout(user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    db.execute(
        text("DELETE FROM sessions WHERE token_hash = :token_hash"),
        {"token_hash": user["token_hash"]},
    )
    db.commit()
    return {"ok": True}


@router.get("/me")
def me(user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    return {
        "ok": True,
        "user": {
            "id": user["id"],
            "email": user["email"],
            "role": user["role"],
            "sport": user["sport"],
            "profile_id": _profile_id(db, user["id"], user["role"]),
        },
    }


@router.post("/forgot-password", dependencies=[_email_limit])
def forgot_password(payload: ForgotPasswordIn, db: Session = Depends(get_db)):
    """Start a password reset.

    Always answers 200 with the same message. When the account exists a
    single-use reset token is stored; outside production the token is also
    returned in the response (there is no mail delivery in this service).
    """
    resp = {"ok": True, "message": "If an account exists for this email, a reset link has been sent."}

    user = db.execute(
        text("SELECT id FROM users WHERE LOWER(email) = :email"),
        {"email": payload.email.lower()},
    ).mappings().first()
    if not user:
        return resp

    token = create_reset_token(db, user["id"])
    db.commit()
    logger.info("password reset requested", extra={"user_id": user["id"]})

    if get_settings().app_env != "production":
        resp["reset_token"] = token
    return resp


@router.post("/reset-password")
def reset_password(payload: ResetPasswordIn, db: Session = Depends(get_db)):
    """Set a new password using a reset token and revoke existing sessions.

    Raises:
        HTTPException: 400 if the token is unknown, expired or already used.
    """
    token_hash = hash_token(payload.token)
    reset = db.execute(
        text("""
            SELECT token_hash, user_id
            FROM password_resets
            WHERE token_hash = :token_hash
              AND used = :used
              AND expires_at > :now
        """),
        {"token_hash": token_hash, "used": False, "now": utcnow()},
    ).mappings().first()

    if not reset:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    db.execute(
        text("UPDATE password_resets SET used = :used WHERE token_hash = :token_hash"),
        {"used": True, "token_hash": token_hash},
    )
    db.execute(
        text("UPDATE users SET password_hash = :password_hash WHERE id = :id"),
        {"password_hash": hash_password(payload.new_password), "id": reset["user_id"]},
    )
    db.execute(
        text("DELETE FROM sessions WHERE user_id = :user_id"),
        {"user_id": reset["user_id"]},
    )
    db.commit()

    logger.info("password reset completed", extra={"user_id": reset["user_id"]})
    return {"ok": True}
