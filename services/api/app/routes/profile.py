"""Own-profile routes for players and coaches."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..db import get_db, utcnow
from ..rate_limit import RATE_LIMITS, rate_limited
from ..schemas import CoachProfileUpdate, PlayerProfileUpdate, PrivacySettingsIn
from ..security import get_current_user, require_player

router = APIRouter(prefix="/profile", tags=["profile"])

_write_limit = Depends(rate_limited(RATE_LIMITS["api_write"], "api_write"))


def _load_profile(db: Session, user: dict) -> dict:
    table = "players" if user["role"] == "player" else "coaches"
    row = db.execute(
        text(f"SELECT * FROM {table} WHERE user_id = :user_id"),
        {"user_id": user["id"]},
    ).mappings().first()
    if not row:
        raise HTTPException(status_code=404, detail="Profile not found")
    return dict(row)


def _apply_update(db: Session, table: str, profile_id: str, changes: dict) -> None:
    # column names come from the Pydantic model fields, never from the client
    assignments = ", ".join(f"{col} = :{col}" for col in changes)
    db.execute(
        text(f"UPDATE {table} SET {assignments}, updated_at = :updated_at WHERE id = :profile_id"),
        {**changes, "updated_at": utcnow(), "profile_id": profile_id},
    )


@router.get("")
def get_profile(user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"ok": True, "role": user["role"], "profile": _load_profile(db, user)}


@router.patch("", dependencies=[_write_limit])
def update_profile(
    payload: dict,
    user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Partially update the caller's profile.

    The body is validated against `PlayerProfileUpdate` or `CoachProfileUpdate`
    depending on the caller's role; only fields present in the body change.

    Returns:
        dict: `{ "ok": true, "profile": {...} }` with the updated row.
    """
    model = PlayerProfileUpdate if user["role"] == "player" else CoachProfileUpdate
    try:
        update = model.model_validate(payload)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc
    changes = update.model_dump(exclude_unset=True)

    profile = _load_profile(db, user)
    if changes:
        table = "players" if user["role"] == "player" else "coaches"
        _apply_update(db, table, profile["id"], changes)
        if user["role"] == "player" and ("first_name" in changes or "last_name" in changes):
            db.execute(
                text("UPDATE players SET full_name = first_name || ' ' || last_name WHERE id = :id"),
                {"id": profile["id"]},
            )
        db.commit()

    return {"ok": True, "profile": _load_profile(db, user)}


@router.patch("/privacy", dependencies=[_write_limit])
def update_privacy(
    payload: PrivacySettingsIn,
    user: dict = Depends(require_player),
    db: Session = Depends(get_db),
):
    """Toggle discoverability (`recruiting_activated`) and field visibility."""
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if changes:
        _apply_update(db, "players", user["player_id"], changes)
        db.commit()

    row = db.execute(
        text("""
            SELECT recruiting_activated, show_gpa, show_contact_info
            FROM players WHERE id = :id
        """),
        {"id": user["player_id"]},
    ).mappings().first()
    return {
        "ok": True,
        "privacy": {key: bool(value) for key, value in row.items()},
    }
