"""Team announcements posted by the coach, with optional acknowledgement."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..activity import create_notification, message_preview
from ..db import get_db, new_id, utcnow
from ..rate_limit import RATE_LIMITS, rate_limited
from ..schemas import AnnouncementIn
from ..security import get_current_user, require_player
from .teams import team_access

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teams", tags=["teams"])

_write_limit = Depends(rate_limited(RATE_LIMITS["api_write"], "api_write"))


@router.post("/{team_id}/announcements", status_code=201, dependencies=[_write_limit])
def create_announcement(
    team_id: str,
    payload: AnnouncementIn,
    user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Publish an announcement and notify every roster player."""
    team = team_access(db, team_id, user)
    if team["player_id"] is not None:
        raise HTTPException(status_code=403, detail="Only the team's coach can post announcements")

    announcement_id = new_id()
    db.execute(
        text("""
            INSERT INTO team_announcements
              (id, team_id, title, body, urgency, requires_acknowledgement, published_at, created_by)
            VALUES (:id, :team_id, :title, :body, :urgency, :requires_acknowledgement, :published_at, :created_by)
        """),
        {
            **payload.model_dump(),
            "id": announcement_id,
            "team_id": team_id,
            "published_at": utcnow(),
            "created_by": team["coach_id"],
        },
    )
    members = db.execute(
        text("""
            SELECT p.user_id
            FROM team_members tm
            JOIN players p ON p.id = tm.player_id
            WHERE tm.team_id = :team_id
        """),
        {"team_id": team_id},
    ).scalars().all()
    for member_user_id in members:
        create_notification(
            db,
            member_user_id,
            "announcement",
            f"{team['name']}: {payload.title}",
            message_preview(payload.body),
            f"/teams/{team_id}/announcements",
        )
    db.commit()

    logger.info("announcement published", extra={"team_id": team_id, "notified": len(members)})
    return {"ok": True, "announcement": {"id": announcement_id, **payload.model_dump()}, "notified": len(members)}


@router.get("/{team_id}/announcements")
def list_announcements(team_id: str, user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    """Newest first. The coach gets acknowledgement counts; a player gets `acknowledged`."""
    team = team_access(db, team_id, user)
    rows = db.execute(
        text("""
            SELECT a.id, a.title, a.body, a.urgency, a.requires_acknowledgement, a.published_at,
                   (SELECT COUNT(*) FROM announcement_acknowledgements k
                    WHERE k.announcement_id = a.id) AS acknowledgement_count,
                   (SELECT COUNT(*) FROM announcement_acknowledgements k
                    WHERE k.announcement_id = a.id AND k.player_id = :player_id) AS own_acknowledgements
            FROM team_announcements a
            WHERE a.team_id = :team_id
            ORDER BY a.published_at DESC
        """),
        {"team_id": team_id, "player_id": team["player_id"]},
    ).mappings().all()

    announcements = []
    for row in rows:
        item = dict(row)
        own = item.pop("own_acknowledgements")
        if team["player_id"] is not None:
            item.pop("acknowledgement_count")
            item["acknowledged"] = own > 0
        announcements.append(item)
    return {"ok": True, "announcements": announcements}


@router.post("/{team_id}/announcements/{announcement_id}/acknowledge", dependencies=[_write_limit])
def acknowledge_announcement(
    team_id: str,
    announcement_id: str,
    player: dict = Depends(require_player),
    db: Session = Depends(get_db),
):
    team = team_access(db, team_id, player)
    exists = db.execute(
        text("SELECT 1 FROM team_announcements WHERE id = :id AND team_id = :team_id"),
        {"id": announcement_id, "team_id": team_id},
    ).first()
    if not exists:
        raise HTTPException(status_code=404, detail="Announcement not found")

    db.execute(
        text("""
            INSERT INTO announcement_acknowledgements (id, announcement_id, player_id, acknowledged_at)
            VALUES (:id, :announcement_id, :player_id, :acknowledged_at)
            ON CONFLICT (announcement_id, player_id) DO NOTHING
        """),
        {
            "id": new_id(),
            "announcement_id": announcement_id,
            "player_id": team["player_id"],
            "acknowledged_at": utcnow(),
        },
    )
    db.commit()
    return {"ok": True}
