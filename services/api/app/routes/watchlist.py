"""Coach watchlist and recruiting pipeline routes.

A watchlist entry is one (coach, player) pair with a pipeline stage, free-form
notes, tags and a priority. The pipeline board is the same data grouped by
stage; dragging a card between columns is a stage update.

Every query is scoped to the calling coach.
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..activity import record_engagement
from ..db import get_db, new_id, utcnow
from ..models import PIPELINE_STAGES
from ..rate_limit import RATE_LIMITS, rate_limited
from ..schemas import PipelineStage, WatchlistAddIn, WatchlistUpdateIn
from ..security import require_coach

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/watchlist", tags=["watchlist"])

_read_limit = Depends(rate_limited(RATE_LIMITS["api_read"], "api_read"))
_write_limit = Depends(rate_limited(RATE_LIMITS["api_write"], "api_write"))

_ENTRY_SELECT = """
    SELECT
      w.id, w.player_id, w.pipeline_stage, w.notes, w.tags, w.priority,
      w.added_at, w.updated_at,
      p.first_name, p.last_name, p.full_name, p.grad_year,
      p.primary_position, p.city, p.state, p.high_school_name
    FROM watchlists w
    JOIN players p ON p.id = w.player_id
"""


def _entry(row) -> dict:
    entry = dict(row)
    entry["tags"] = json.loads(entry["tags"]) if entry["tags"] else []
    return entry


def _get_entry(db: Session, coach_id: str, player_id: str):
    return db.execute(
        text(f"{_ENTRY_SELECT} WHERE w.coach_id = :coach_id AND w.player_id = :player_id"),
        {"coach_id": coach_id, "player_id": player_id},
    ).mappings().first()


@router.get("", dependencies=[_read_limit])
def list_watchlist(
    coach: dict = Depends(require_coach),
    db: Session = Depends(get_db),
    stage: PipelineStage | None = Query(default=None),
    grad_year: int | None = Query(default=None),
    position: str | None = Query(default=None),
    search: str | None = Query(default=None),
):
    """List the coach's watchlist, newest first, with a player summary per entry."""
    clauses = ["w.coach_id = :coach_id"]
    params: dict = {"coach_id": coach["coach_id"]}

    if stage:
        clauses.append("w.pipeline_stage = :stage")
        params["stage"] = stage
    if grad_year is not None:
        clauses.append("p.grad_year = :grad_year")
        params["grad_year"] = grad_year
    if position:
        clauses.append("p.primary_position = :position")
        params["position"] = position
    if search and search.strip():
        clauses.append("LOWER(p.full_name) LIKE :q")
        params["q"] = f"%{search.strip().lower()}%"

    rows = db.execute(
        text(f"{_ENTRY_SELECT} WHERE {' AND '.join(clauses)} ORDER BY w.added_at DESC"),
        params,
    ).mappings().all()
    return {"ok": True, "entries": [_entry(r) for r in rows]}


def stage_counts(db: Session, coach_id: str) -> dict:
    """Entry count per pipeline stage; every stage is present."""
    rows = db.execute(
        text("""
            SELECT pipeline_stage, COUNT(*) AS n
            FROM watchlists
            WHERE coach_id = :coach_id
            GROUP BY pipeline_stage
        """),
        {"coach_id": coach_id},
    ).mappings().all()

    by_stage = {stage: 0 for stage in PIPELINE_STAGES}
    for r in rows:
        by_stage[r["pipeline_stage"]] = int(r["n"])
    return by_stage


@router.get("/stats", dependencies=[_read_limit])
def watchlist_stats(coach: dict = Depends(require_coach), db: Session = Depends(get_db)):
    """Total entries and count per pipeline stage (every stage present)."""
    by_stage = stage_counts(db, coach["coach_id"])
    return {"ok": True, "total": sum(by_stage.values()), "by_stage": by_stage}


@router.get("/pipeline", dependencies=[_read_limit])
def pipeline(coach: dict = Depends(require_coach), db: Session = Depends(get_db)):
    """Watchlist entries grouped by stage, ordered by priority then recency."""
    rows = db.execute(
        text(f"{_ENTRY_SELECT} WHERE w.coach_id = :coach_id ORDER BY w.priority DESC, w.updated_at DESC"),
        {"coach_id": coach["coach_id"]},
    ).mappings().all()

    columns = {stage: [] for stage in PIPELINE_STAGES}
    for r in rows:
        columns[r["pipeline_stage"]].append(_entry(r))
    return {"ok": True, "pipeline": columns}


@router.post("", status_code=201, dependencies=[_write_limit])
def add_to_watchlist(payload: WatchlistAddIn, coach: dict = Depends(require_coach), db: Session = Depends(get_db)):
    """Add a player to the coach's watchlist.

    Raises:
        HTTPException: 404 for an unknown player; 409 if already on the watchlist.
    """
    player = db.execute(
        text("SELECT id FROM players WHERE id = :player_id"),
        {"player_id": payload.player_id},
    ).first()
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")

    if _get_entry(db, coach["coach_id"], payload.player_id):
        raise HTTPException(status_code=409, detail="Player is already on your watchlist")

    now = utcnow()
    db.execute(
        text("""
            INSERT INTO watchlists
              (id, coach_id, player_id, pipeline_stage, notes, tags, priority, added_at, updated_at)
            VALUES
              (:id, :coach_id, :player_id, :stage, :notes, :tags, 0, :now, :now)
        """),
        {
            "id": new_id(),
            "coach_id": coach["coach_id"],
            "player_id": payload.player_id,
            "stage": payload.stage,
            "notes": payload.notes,
            "tags": json.dumps(payload.tags or []),
            "now": now,
        },
    )
    record_engagement(db, payload.player_id, coach["coach_id"], "watchlist_add", {"stage": payload.stage})
    db.commit()

    logger.info("watchlist add", extra={"coach_id": coach["coach_id"], "player_id": payload.player_id})
    return {"ok": True, "entry": _entry(_get_entry(db, coach["coach_id"], payload.player_id))}


@router.patch("/{player_id}", dependencies=[_write_limit])
def update_watchlist_entry(
    player_id: str,
    payload: WatchlistUpdateIn,
    coach: dict = Depends(require_coach),
    db: Session = Depends(get_db),
):
    """Update stage, notes, tags or priority of an entry.

    Only fields present in the body change. `notes` and `tags` may be sent as
    null (or empty) to clear them; `stage` and `priority` may not be null.

    Raises:
        HTTPException: 404 if the player is not on the coach's watchlist.
    """
    if not _get_entry(db, coach["coach_id"], player_id):
        raise HTTPException(status_code=404, detail="Watchlist entry not found")

    changes = payload.model_dump(exclude_unset=True)
    columns = {}
    if "stage" in changes:
        columns["pipeline_stage"] = changes["stage"]
    if "notes" in changes:
        columns["notes"] = changes["notes"] or None
    if "tags" in changes:
        columns["tags"] = json.dumps(changes["tags"] or [])
    if "priority" in changes:
        columns["priority"] = changes["priority"]

    if columns:
        assignments = ", ".join(f"{col} = :{col}" for col in columns)
        db.execute(
            text(f"""
                UPDATE watchlists SET {assignments}, updated_at = :updated_at
                WHERE coach_id = :coach_id AND player_id = :player_id
            """),
            {**columns, "updated_at": utcnow(), "coach_id": coach["coach_id"], "player_id": player_id},
        )
        db.commit()

    return {"ok": True, "entry": _entry(_get_entry(db, coach["coach_id"], player_id))}


@router.delete("/{player_id}", dependencies=[_write_limit])
def remove_from_watchlist(player_id: str, coach: dict = Depends(require_coach), db: Session = Depends(get_db)):
    """Remove a player from the watchlist.

    Raises:
        HTTPException: 404 if the player is not on the coach's watchlist.
    """
    if not _get_entry(db, coach["coach_id"], player_id):
        raise HTTPException(status_code=404, detail="Watchlist entry not found")

    db.execute(
        text("DELETE FROM watchlists WHERE coach_id = :coach_id AND player_id = :player_id"),
        {"coach_id": coach["coach_id"], "player_id": player_id},
    )
    record_engagement(db, player_id, coach["coach_id"], "watchlist_remove")
    db.commit()
    return {"ok": True}
