"""College directory and player recruiting interests."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..db import get_db, new_id, utcnow
from ..rate_limit import RATE_LIMITS, rate_limited
from ..security import get_current_user, require_player

router = APIRouter(tags=["colleges"])

_read_limit = Depends(rate_limited(RATE_LIMITS["api_read"], "api_read"))
_write_limit = Depends(rate_limited(RATE_LIMITS["api_write"], "api_write"))


@router.get("/colleges", dependencies=[_read_limit])
def list_colleges(
    _user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
    division: str | None = Query(default=None),
    state: str | None = Query(default=None),
    conference: str | None = Query(default=None, description="Substring match, case-insensitive."),
    search: str | None = Query(default=None, description="Matches name, city or state."),
):
    """List colleges ordered by name with optional filters."""
    clauses = []
    params = {}

    if division:
        clauses.append("division = :division")
        params["division"] = division
    if state:
        clauses.append("state = :state")
        params["state"] = state.upper()
    if conference and conference.strip():
        clauses.append("LOWER(COALESCE(conference, '')) LIKE :conference")
        params["conference"] = f"%{conference.strip().lower()}%"
    if search and search.strip():
        clauses.append("""(
            LOWER(name) LIKE :q
            OR LOWER(COALESCE(city, '')) LIKE :q
            OR LOWER(COALESCE(state, '')) LIKE :q
        )""")
        params["q"] = f"%{search.strip().lower()}%"

    where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    rows = db.execute(
        text(f"""
            SELECT id, name, city, state, division, conference
            FROM colleges
            {where_sql}
            ORDER BY name
        """),
        params,
    ).mappings().all()

    return {"ok": True, "colleges": list(rows)}


@router.get("/colleges/states", dependencies=[_read_limit])
def list_states(_user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = db.execute(
        text("SELECT DISTINCT state FROM colleges WHERE state IS NOT NULL ORDER BY state")
    ).scalars().all()
    return {"ok": True, "states": list(rows)}


@router.get("/colleges/conferences", dependencies=[_read_limit])
def list_conferences(_user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = db.execute(
        text("SELECT DISTINCT conference FROM colleges WHERE conference IS NOT NULL ORDER BY conference")
    ).scalars().all()
    return {"ok": True, "conferences": list(rows)}


@router.get("/interests", dependencies=[_read_limit])
def list_interests(player: dict = Depends(require_player), db: Session = Depends(get_db)):
    rows = db.execute(
        text("""
            SELECT ri.college_id, ri.created_at, c.name, c.city, c.state, c.division, c.conference
            FROM recruiting_interests ri
            JOIN colleges c ON c.id = ri.college_id
            WHERE ri.player_id = :player_id
            ORDER BY c.name
        """),
        {"player_id": player["player_id"]},
    ).mappings().all()
    return {"ok": True, "interests": list(rows)}


@router.post("/interests/{college_id}", dependencies=[_write_limit])
def add_interest(college_id: str, player: dict = Depends(require_player), db: Session = Depends(get_db)):
    """Mark interest in a college. Adding an existing interest is a no-op."""
    exists = db.execute(
        text("SELECT 1 FROM colleges WHERE id = :college_id"),
        {"college_id": college_id},
    ).first()
    if not exists:
        raise HTTPException(status_code=404, detail="College not found")

    db.execute(
        text("""
            INSERT INTO recruiting_interests (id, player_id, college_id, created_at)
            VALUES (:id, :player_id, :college_id, :created_at)
            ON CONFLICT (player_id, college_id) DO NOTHING
        """),
        {"id": new_id(), "player_id": player["player_id"], "college_id": college_id, "created_at": utcnow()},
    )
    db.commit()
    return {"ok": True}


@router.delete("/interests/{college_id}", dependencies=[_write_limit])
def remove_interest(college_id: str, player: dict = Depends(require_player), db: Session = Depends(get_db)):
    db.execute(
        text("DELETE FROM recruiting_interests WHERE player_id = :player_id AND college_id = :college_id"),
        {"player_id": player["player_id"], "college_id": college_id},
    )
    db.commit()
    return {"ok": True}
