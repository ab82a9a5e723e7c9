"""Dashboard summaries for coaches and players."""

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..activity import unread_message_count
from ..db import get_db, to_iso
from ..security import require_coach, require_player
from .watchlist import stage_counts

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/coach")
def coach_dashboard(coach: dict = Depends(require_coach), db: Session = Depends(get_db)):
    """Watchlist counts per stage, unread messages and the coach's latest activity."""
    by_stage = stage_counts(db, coach["coach_id"])

    recent = db.execute(
        text("""
            SELECT e.id, e.player_id, e.engagement_type, e.engagement_date, p.full_name AS player_name
            FROM player_engagement_events e
            JOIN players p ON p.id = e.player_id
            WHERE e.coach_id = :coach_id
            ORDER BY e.engagement_date DESC
            LIMIT 10
        """),
        {"coach_id": coach["coach_id"]},
    ).mappings().all()

    return {
        "ok": True,
        "watchlist": {"total": sum(by_stage.values()), "by_stage": by_stage},
        "unread_messages": unread_message_count(db, coach["id"]),
        "recent_activity": list(recent),
    }


@router.get("/player")
def player_dashboard(player: dict = Depends(require_player), db: Session = Depends(get_db)):
    """Engagement counters for the player's recruiting profile."""
    since = to_iso(datetime.now(timezone.utc) - timedelta(days=30))
    counts = db.execute(
        text("""
            SELECT
              SUM(CASE WHEN engagement_type = 'profile_view' THEN 1 ELSE 0 END) AS profile_views,
              SUM(CASE WHEN engagement_type = 'profile_view' AND engagement_date >= :since
                       THEN 1 ELSE 0 END) AS profile_views_30d,
              SUM(CASE WHEN engagement_type = 'watchlist_add' THEN 1 ELSE 0 END) AS watchlist_adds,
              COUNT(DISTINCT coach_id) AS coaches_engaged
            FROM player_engagement_events
            WHERE player_id = :player_id
        """),
        {"player_id": player["player_id"], "since": since},
    ).mappings().first()

    interests = db.execute(
        text("SELECT COUNT(*) FROM recruiting_interests WHERE player_id = :player_id"),
        {"player_id": player["player_id"]},
    ).scalar_one()

    return {
        "ok": True,
        "stats": {
            "profile_views": int(counts["profile_views"] or 0),
            "profile_views_30d": int(counts["profile_views_30d"] or 0),
            "watchlist_adds": int(counts["watchlist_adds"] or 0),
            "coaches_engaged": int(counts["coaches_engaged"] or 0),
            "interests": int(interests),
            "unread_messages": unread_message_count(db, player["id"]),
        },
    }
