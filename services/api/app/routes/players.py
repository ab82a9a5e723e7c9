"""Player discovery and player profile routes.

Responsibilities:
- coach-facing discovery over players that opted in (`recruiting_activated`)
- single player profile, recording a `profile_view` engagement event when a
  coach opens it

Privacy flags on the player row decide what a viewer gets back: GPA is
`null` unless `show_gpa`, email/phone are `null` unless `show_contact_info`.
The player always sees its own full profile.
"""

import math

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..activity import record_engagement
from ..db import get_db
from ..rate_limit import RATE_LIMITS, rate_limited
from ..security import get_current_user, require_coach

router = APIRouter(tags=["players"])

_read_limit = Depends(rate_limited(RATE_LIMITS["api_read"], "api_read"))

SORTS = {
    "updated_desc": "p.updated_at DESC",
    "name_asc": "p.last_name ASC, p.first_name ASC",
    "name_desc": "p.last_name DESC, p.first_name DESC",
    "grad_year_asc": "p.grad_year ASC",
    "grad_year_desc": "p.grad_year DESC",
    "gpa_desc": "(p.gpa IS NULL) ASC, p.gpa DESC",
}

_SUMMARY_COLUMNS = """
    p.id, p.user_id, p.sport, p.first_name, p.last_name, p.full_name,
    p.grad_year, p.primary_position, p.secondary_position, p.bats, p.throws,
    p.height_in, p.weight_lb, p.city, p.state, p.high_school_name, p.gpa,
    p.show_gpa, p.updated_at
"""


def _public_summary(row) -> dict:
    player = dict(row)
    if not player.pop("show_gpa"):
        player["gpa"] = None
    return player


@router.get("/discover", dependencies=[_read_limit])
def discover_players(
    coach: dict = Depends(require_coach),
    db: Session = Depends(get_db),
    grad_year: int | None = Query(default=None),
    position: str | None = Query(default=None, description="Primary position"),
    state: str | None = Query(default=None, min_length=2, max_length=2),
    bats: str | None = Query(default=None),
    throws: str | None = Query(default=None),
    min_gpa: float | None = Query(default=None, ge=0, le=5),
    sport: str | None = Query(default=None),
    search: str | None = Query(default=None, description="Case-insensitive match on player name."),
    sort: str = Query(default="updated_desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """Search discoverable players.

    Only players with `recruiting_activated` are returned. `min_gpa` is applied
    to the stored GPA even when the player hides it; the hidden value is still
    returned as `null`.

    Returns:
        dict: `{ "ok": true, "players": [...], "total", "page", "limit", "total_pages" }`.

    Raises:
        HTTPException: 400 for an unknown `sort`.
    """
    if sort not in SORTS:
        raise HTTPException(status_code=400, detail=f"Unknown sort: {sort}")

    clauses = ["p.recruiting_activated = :activated"]
    params: dict = {"activated": True}

    if grad_year is not None:
        clauses.append("p.grad_year = :grad_year")
        params["grad_year"] = grad_year
    if position:
        clauses.append("p.primary_position = :position")
        params["position"] = position
    if state:
        clauses.append("p.state = :state")
        params["state"] = state.upper()
    if bats:
        clauses.append("p.bats = :bats")
        params["bats"] = bats
    if throws:
        clauses.append("p.throws = :throws")
        params["throws"] = throws
    if min_gpa is not None:
        clauses.append("p.gpa >= :min_gpa")
        params["min_gpa"] = min_gpa
    if sport:
        clauses.append("p.sport = :sport")
        params["sport"] = sport
    if search and search.strip():
        clauses.append("""(
            LOWER(p.first_name) LIKE :q
            OR LOWER(p.last_name) LIKE :q
            OR LOWER(p.full_name) LIKE :q
        )""")
        params["q"] = f"%{search.strip().lower()}%"

    where_sql = " AND ".join(clauses)

    total = db.execute(
        text(f"SELECT COUNT(*) AS total FROM players p WHERE {where_sql}"),
        params,
    ).scalar_one()

    rows = db.execute(
        text(f"""
            SELECT {_SUMMARY_COLUMNS}
            FROM players p
            WHERE {where_sql}
            ORDER BY {SORTS[sort]}, p.id
            LIMIT :limit OFFSET :offset
        """),
        {**params, "limit": limit, "offset": (page - 1) * limit},
    ).mappings().all()

    return {
        "ok": True,
        "players": [_public_summary(r) for r in rows],
        "total": int(total),
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if total else 0,
    }


@router.get("/players/{player_id}", dependencies=[_read_limit])
def get_player(
    player_id: str,
    user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Fetch a player profile.

    A player that is not discoverable is only visible to itself. When the
    viewer is a coach, a `profile_view` engagement event is stored.

    Raises:
        HTTPException: 404 if the player does not exist or is not visible.
    """
    row = db.execute(
        text("""
            SELECT p.*, u.email
            FROM players p
            JOIN users u ON u.id = p.user_id
            WHERE p.id = :player_id
        """),
        {"player_id": player_id},
    ).mappings().first()

    is_owner = row is not None and row["user_id"] == user["id"]
    if not row or (not row["recruiting_activated"] and not is_owner):
        raise HTTPException(status_code=404, detail="Player not found")

    player = dict(row)
    if not is_owner:
        if not player["show_gpa"]:
            player["gpa"] = None
        if not player["show_contact_info"]:
            player["email"] = None
            player["phone"] = None

    if user["role"] == "coach":
        coach = db.execute(
            text("SELECT id FROM coaches WHERE user_id = :user_id"),
            {"user_id": user["id"]},
        ).mappings().first()
        if coach:
            record_engagement(db, player_id, coach["id"], "profile_view")
            db.commit()

    return {"ok": True, "player": player}
