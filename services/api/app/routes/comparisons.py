"""Saved player comparisons for coaches.

A comparison names two to four players plus whatever the client wants to keep
with it (`comparison_data`, e.g. the chosen metrics). Player ids and data are
stored as JSON text.
"""

import json

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import bindparam, text
from sqlalchemy.orm import Session

from ..db import get_db, new_id, utcnow
from ..rate_limit import RATE_LIMITS, rate_limited
from ..schemas import ComparisonIn
from ..security import require_coach

router = APIRouter(prefix="/comparisons", tags=["discover"])

_write_limit = Depends(rate_limited(RATE_LIMITS["api_write"], "api_write"))


def _player_summaries(db: Session, player_ids: list[str]) -> dict[str, dict]:
    rows = db.execute(
        text("""
            SELECT id, full_name, sport, grad_year, primary_position, city, state
            FROM players
            WHERE id IN :ids
        """).bindparams(bindparam("ids", expanding=True)),
        {"ids": player_ids},
    ).mappings().all()
    return {r["id"]: dict(r) for r in rows}


def _comparison(row, players: dict[str, dict]) -> dict:
    item = dict(row)
    item["player_ids"] = json.loads(item["player_ids"])
    item["comparison_data"] = json.loads(item["comparison_data"])
    item["players"] = [players[pid] for pid in item["player_ids"] if pid in players]
    return item


@router.post("", status_code=201, dependencies=[_write_limit])
def create_comparison(payload: ComparisonIn, coach: dict = Depends(require_coach), db: Session = Depends(get_db)):
    """Save a comparison.

    Raises:
        HTTPException: 404 when any of the players does not exist.
    """
    players = _player_summaries(db, payload.player_ids)
    if len(players) != len(payload.player_ids):
        raise HTTPException(status_code=404, detail="Player not found")

    row = {
        "id": new_id(),
        "coach_id": coach["coach_id"],
        "name": payload.name,
        "description": payload.description,
        "player_ids": json.dumps(payload.player_ids),
        "comparison_data": json.dumps(payload.comparison_data),
        "created_at": utcnow(),
    }
    db.execute(
        text("""
            INSERT INTO player_comparisons (id, coach_id, name, description, player_ids, comparison_data, created_at)
            VALUES (:id, :coach_id, :name, :description, :player_ids, :comparison_data, :created_at)
        """),
        row,
    )
    db.commit()
    return {"ok": True, "comparison": _comparison(row, players)}


@router.get("")
def list_comparisons(coach: dict = Depends(require_coach), db: Session = Depends(get_db)):
    rows = db.execute(
        text("""
            SELECT id, coach_id, name, description, player_ids, comparison_data, created_at
            FROM player_comparisons
            WHERE coach_id = :coach_id
            ORDER BY created_at DESC
        """),
        {"coach_id": coach["coach_id"]},
    ).mappings().all()

    all_ids = sorted({pid for r in rows for pid in json.loads(r["player_ids"])})
    players = _player_summaries(db, all_ids) if all_ids else {}
    return {"ok": True, "comparisons": [_comparison(r, players) for r in rows]}


@router.delete("/{comparison_id}", dependencies=[_write_limit])
def delete_comparison(comparison_id: str, coach: dict = Depends(require_coach), db: Session = Depends(get_db)):
    result = db.execute(
        text("DELETE FROM player_comparisons WHERE id = :id AND coach_id = :coach_id"),
        {"id": comparison_id, "coach_id": coach["coach_id"]},
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="Comparison not found")
    db.commit()
    return {"ok": True}
