"""Team qualifiers for golf.

A coach schedules a qualifier for one of their golf teams and enters roster
players. Entered players record rounds against it (`qualifier_id` on
`POST /golf/rounds`) and the leaderboard is built from the completed ones.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..db import get_db, new_id, utcnow
from ..golf import qualifier_leaderboard
from ..rate_limit import RATE_LIMITS, rate_limited
from ..schemas import QualifierCreateIn, QualifierStatusIn
from ..security import get_current_user, require_coach
from .teams import owned_team, team_access

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/golf", tags=["golf"])

_write_limit = Depends(rate_limited(RATE_LIMITS["api_write"], "api_write"))

QUALIFIER_COLUMNS = """
    id, team_id, name, description, course_name, location, num_rounds, holes_per_round,
    start_date, end_date, status, show_live_leaderboard, created_by, created_at
"""


def _qualifier(db: Session, qualifier_id: str) -> dict:
    row = db.execute(
        text(f"SELECT {QUALIFIER_COLUMNS} FROM golf_qualifiers WHERE id = :id"),
        {"id": qualifier_id},
    ).mappings().first()
    if not row:
        raise HTTPException(status_code=404, detail="Qualifier not found")
    return dict(row)


def require_qualifier_entry(db: Session, qualifier_id: str, player_id: str) -> dict:
    """Qualifier row when `player_id` is entered in it.

    Raises:
        HTTPException: 404 for an unknown qualifier, 400 when the player is not entered.
    """
    qualifier = _qualifier(db, qualifier_id)
    entered = db.execute(
        text("SELECT 1 FROM golf_qualifier_entries WHERE qualifier_id = :qualifier_id AND player_id = :player_id"),
        {"qualifier_id": qualifier_id, "player_id": player_id},
    ).first()
    if not entered:
        raise HTTPException(status_code=400, detail="Player is not entered in this qualifier")
    return qualifier


def _entries(db: Session, qualifier_id: str) -> list[dict]:
    rows = db.execute(
        text("""
            SELECT e.player_id, p.full_name, p.grad_year
            FROM golf_qualifier_entries e
            JOIN players p ON p.id = e.player_id
            WHERE e.qualifier_id = :qualifier_id
            ORDER BY p.last_name, p.first_name
        """),
        {"qualifier_id": qualifier_id},
    ).mappings().all()
    return [dict(r) for r in rows]


@router.post("/teams/{team_id}/qualifiers", status_code=201, dependencies=[_write_limit])
def create_qualifier(
    team_id: str,
    payload: QualifierCreateIn,
    coach: dict = Depends(require_coach),
    db: Session = Depends(get_db),
):
    """Schedule a qualifier and enter the given roster players.

    Raises:
        HTTPException: 404 for a team the coach does not own; 400 for a non-golf
            team or a player who is not on the roster.
    """
    team = owned_team(db, team_id, coach["coach_id"])
    if team["sport"] != "golf":
        raise HTTPException(status_code=400, detail="Qualifiers are only available for golf teams")

    player_ids = list(dict.fromkeys(payload.player_ids))
    if player_ids:
        roster = {
            r[0]
            for r in db.execute(
                text("SELECT player_id FROM team_members WHERE team_id = :team_id"),
                {"team_id": team_id},
            ).all()
        }
        missing = [pid for pid in player_ids if pid not in roster]
        if missing:
            raise HTTPException(status_code=400, detail=f"Players not on this team: {', '.join(missing)}")

    qualifier_id = new_id()
    db.execute(
        text("""
            INSERT INTO golf_qualifiers
              (id, team_id, name, description, course_name, location, num_rounds, holes_per_round,
               start_date, end_date, status, show_live_leaderboard, created_by, created_at)
            VALUES
              (:id, :team_id, :name, :description, :course_name, :location, :num_rounds, :holes_per_round,
               :start_date, :end_date, :status, :show_live_leaderboard, :created_by, :created_at)
        """),
        {
            **payload.model_dump(exclude={"player_ids"}),
            "id": qualifier_id,
            "team_id": team_id,
            "name": payload.name.strip(),
            "start_date": payload.start_date.isoformat(),
            "end_date": payload.end_date.isoformat() if payload.end_date else None,
            "status": "upcoming",
            "created_by": coach["coach_id"],
            "created_at": utcnow(),
        },
    )
    for player_id in player_ids:
        db.execute(
            text("""
                INSERT INTO golf_qualifier_entries (id, qualifier_id, player_id)
                VALUES (:id, :qualifier_id, :player_id)
            """),
            {"id": new_id(), "qualifier_id": qualifier_id, "player_id": player_id},
        )
    db.commit()

    logger.info("qualifier created", extra={"qualifier_id": qualifier_id, "entries": len(player_ids)})
    return {"ok": True, "qualifier": _qualifier(db, qualifier_id), "entries": _entries(db, qualifier_id)}


@router.get("/teams/{team_id}/qualifiers")
def list_qualifiers(team_id: str, user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    team_access(db, team_id, user)
    rows = db.execute(
        text(f"""
            SELECT {QUALIFIER_COLUMNS},
                   (SELECT COUNT(*) FROM golf_qualifier_entries e WHERE e.qualifier_id = q.id) AS entry_count
            FROM golf_qualifiers q
            WHERE team_id = :team_id
            ORDER BY start_date DESC, created_at DESC
        """),
        {"team_id": team_id},
    ).mappings().all()
    return {"ok": True, "qualifiers": list(rows)}


@router.get("/qualifiers/{qualifier_id}")
def get_qualifier(qualifier_id: str, user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    """Qualifier with its entries and leaderboard.

    Players only see the leaderboard when `show_live_leaderboard` is set or the
    qualifier is completed.
    """
    qualifier = _qualifier(db, qualifier_id)
    access = team_access(db, qualifier["team_id"], user)
    entries = _entries(db, qualifier_id)

    leaderboard = None
    if access["player_id"] is None or qualifier["show_live_leaderboard"] or qualifier["status"] == "completed":
        rounds = db.execute(
            text("""
                SELECT player_id, total_score, is_complete, round_date, created_at
                FROM golf_rounds
                WHERE qualifier_id = :qualifier_id
            """),
            {"qualifier_id": qualifier_id},
        ).mappings().all()
        leaderboard = qualifier_leaderboard(entries, [dict(r) for r in rounds])
    return {"ok": True, "qualifier": qualifier, "entries": entries, "leaderboard": leaderboard}


@router.patch("/qualifiers/{qualifier_id}/status", dependencies=[_write_limit])
def update_qualifier_status(
    qualifier_id: str,
    payload: QualifierStatusIn,
    coach: dict = Depends(require_coach),
    db: Session = Depends(get_db),
):
    qualifier = _qualifier(db, qualifier_id)
    owned_team(db, qualifier["team_id"], coach["coach_id"])
    db.execute(
        text("UPDATE golf_qualifiers SET status = :status WHERE id = :id"),
        {"status": payload.status, "id": qualifier_id},
    )
    db.commit()
    return {"ok": True, "qualifier": _qualifier(db, qualifier_id)}
