"""Job-related API routes.

These endpoints expose lightweight job triggering to support local
development and operational workflows.

Note:
- Recalculating every player runs as the `jobs.golf_stats` batch job; the API
  endpoint only recomputes a single player's cached stats inline.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..db import get_db
from ..golf.store import recalculate_player_stats
from ..rate_limit import RATE_LIMITS, rate_limited
from ..security import get_current_user
from .teams import coach_has_player

router = APIRouter(tags=["jobs"])

_write_limit = Depends(rate_limited(RATE_LIMITS["api_write"], "api_write"))


@router.post("/jobs/golf_stats/recalculate", dependencies=[_write_limit])
def recalculate_golf_stats(
    player_id: str | None = Query(default=None, description="Defaults to the calling player."),
    user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Recompute and cache shot-based golf stats for one player.

    The result is upserted into `golf_player_stats` as a JSON payload with a
    `calculated_at` timestamp.

    Args:
        player_id: Target player; players may only recalculate themselves,
            coaches any player on one of their rosters.

    Returns:
        dict: `{ "ok": true, "player_id", "rounds_included", "calculated_at", "stats" }`.

    Raises:
        HTTPException: 400 when a coach omits `player_id`; 403 when the caller
            may not access the player; 404 if the player does not exist.
    """
    if user["role"] == "player":
        own_id = db.execute(
            text("SELECT id FROM players WHERE user_id = :user_id"),
            {"user_id": user["id"]},
        ).scalar_one()
        player_id = player_id or own_id
        if player_id != own_id:
            raise HTTPException(status_code=403, detail="Players can only recalculate their own stats")
    else:
        if not player_id:
            raise HTTPException(status_code=400, detail="player_id is required")
        exists = db.execute(text("SELECT 1 FROM players WHERE id = :id"), {"id": player_id}).first()
        if not exists:
            raise HTTPException(status_code=404, detail="Player not found")
        coach_id = db.execute(
            text("SELECT id FROM coaches WHERE user_id = :user_id"),
            {"user_id": user["id"]},
        ).scalar_one()
        if not coach_has_player(db, coach_id, player_id):
            raise HTTPException(status_code=403, detail="Player is not on one of your teams")

    result = recalculate_player_stats(db, player_id)
    db.commit()
    return {"ok": True, **result}
