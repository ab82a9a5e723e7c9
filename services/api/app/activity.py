"""Helpers shared by several route modules.

- engagement events: coach activity on a player profile (views, watchlist
  changes) feeding the player dashboard
- notifications: in-app notifications for a user
- unread message counts shared by messaging and the dashboards
"""

import json

from sqlalchemy import text
from sqlalchemy.orm import Session

from .db import new_id, utcnow


def record_engagement(
    db: Session,
    player_id: str,
    coach_id: str | None,
    engagement_type: str,
    metadata: dict | None = None,
) -> None:
    """Insert a `player_engagement_events` row. The caller commits."""
    db.execute(
        text("""
            INSERT INTO player_engagement_events
              (id, player_id, coach_id, engagement_type, engagement_date, metadata)
            VALUES (:id, :player_id, :coach_id, :engagement_type, :engagement_date, :metadata)
        """),
        {
            "id": new_id(),
            "player_id": player_id,
            "coach_id": coach_id,
            "engagement_type": engagement_type,
            "engagement_date": utcnow(),
            "metadata": json.dumps(metadata) if metadata is not None else None,
        },
    )


def create_notification(
    db: Session,
    user_id: str,
    notification_type: str,
    title: str,
    body: str | None = None,
    action_url: str | None = None,
) -> None:
    """Insert an unread notification. The caller commits."""
    db.execute(
        text("""
            INSERT INTO notifications
              (id, user_id, notification_type, title, body, action_url, is_read, created_at)
            VALUES (:id, :user_id, :notification_type, :title, :body, :action_url, :is_read, :created_at)
        """),
        {
            "id": new_id(),
            "user_id": user_id,
            "notification_type": notification_type,
            "title": title,
            "body": body,
            "action_url": action_url,
            "is_read": False,
            "created_at": utcnow(),
        },
    )


def message_preview(content: str, limit: int = 50) -> str:
    """Notification body for a new message: at most `limit` chars plus `...`."""
    return content[:limit] + "..." if len(content) > limit else content


def unread_message_count(db: Session, user_id: str) -> int:
    """Unread messages sent by others across all of the user's conversations."""
    count = db.execute(
        text("""
            SELECT COUNT(*)
            FROM messages m
            JOIN conversation_participants cp
              ON cp.conversation_id = m.conversation_id AND cp.user_id = :user_id
            WHERE m.sender_id <> :user_id
              AND (cp.last_read_at IS NULL OR m.sent_at > cp.last_read_at)
        """),
        {"user_id": user_id},
    ).scalar_one()
    return int(count)
