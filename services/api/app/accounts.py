"""Account creation shared by the signup route and the maintenance CLI."""

from sqlalchemy import text

from .db import new_id, utcnow
from .security import hash_password


class EmailTakenError(ValueError):
    """Raised when an account already exists for the email address."""


def create_account(db, email: str, password: str, role: str, sport: str, first_name: str, last_name: str) -> dict:
    """Insert a user and its `players` / `coaches` profile row. The caller commits.

    Returns:
        dict: `{id, email, role, sport, profile_id}`.

    Raises:
        EmailTakenError: If the email (case-insensitive) is already registered.
    """
    email = email.strip().lower()
    exists = db.execute(
        text("SELECT 1 FROM users WHERE LOWER(email) = :email"),
        {"email": email},
    ).first()
    if exists:
        raise EmailTakenError(email)

    now = utcnow()
    user_id = new_id()
    db.execute(
        text("""
            INSERT INTO users (id, email, password_hash, role, sport, created_at)
            VALUES (:id, :email, :password_hash, :role, :sport, :created_at)
        """),
        {
            "id": user_id,
            "email": email,
            "password_hash": hash_password(password),
            "role": role,
            "sport": sport,
            "created_at": now,
        },
    )
    if role == "player":
        profile_id = create_player_profile(db, user_id, sport, first_name, last_name)
    else:
        profile_id = create_coach_profile(db, user_id, sport, f"{first_name.strip()} {last_name.strip()}")

    return {"id": user_id, "email": email, "role": role, "sport": sport, "profile_id": profile_id}


def create_player_profile(db, user_id: str, sport: str, first_name: str, last_name: str) -> str:
    """New player rows start hidden from discovery with GPA visible, contact info hidden."""
    profile_id = new_id()
    now = utcnow()
    first_name, last_name = first_name.strip(), last_name.strip()
    db.execute(
        text("""
            INSERT INTO players
              (id, user_id, sport, first_name, last_name, full_name,
               recruiting_activated, show_gpa, show_contact_info, created_at, updated_at)
            VALUES
              (:id, :user_id, :sport, :first_name, :last_name, :full_name,
               :recruiting_activated, :show_gpa, :show_contact_info, :now, :now)
        """),
        {
            "id": profile_id,
            "user_id": user_id,
            "sport": sport,
            "first_name": first_name,
            "last_name": last_name,
            "full_name": f"{first_name} {last_name}",
            "recruiting_activated": False,
            "show_gpa": True,
            "show_contact_info": False,
            "now": now,
        },
    )
    return profile_id


def create_coach_profile(db, user_id: str, sport: str, full_name: str) -> str:
    profile_id = new_id()
    db.execute(
        text("""
            INSERT INTO coaches (id, user_id, sport, full_name, created_at, updated_at)
            VALUES (:id, :user_id, :sport, :full_name, :now, :now)
        """),
        {"id": profile_id, "user_id": user_id, "sport": sport, "full_name": full_name, "now": utcnow()},
    )
    return profile_id
