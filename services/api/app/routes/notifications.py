"""In-app notifications for the current user."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..db import get_db
from ..security import get_current_user

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def list_notifications(
    user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
    unread_only: bool = Query(default=False),
    limit: int = Query(50, ge=1, le=200),
):
    where_sql = "WHERE user_id = :user_id"
    params = {"user_id": user["id"], "limit": limit}
    if unread_only:
        where_sql += " AND is_read = :is_read"
        params["is_read"] = False

    rows = db.execute(
        text(f"""
            SELECT id, notification_type, title, body, action_url, is_read, created_at
            FROM notifications
            {where_sql}
            ORDER BY created_at DESC
            LIMIT :limit
        """),
        params,
    ).mappings().all()
    return {"ok": True, "notifications": list(rows)}


@router.post("/read-all")
def mark_all_read(user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    result = db.execute(
        text("UPDATE notifications SET is_read = :is_read WHERE user_id = :user_id AND is_read = :unread"),
        {"is_read": True, "unread": False, "user_id": user["id"]},
    )
    db.commit()
    return {"ok": True, "updated": result.rowcount}


@router.post("/{notification_id}/read")
def mark_read(notification_id: str, user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    result = db.execute(
        text("UPDATE notifications SET is_read = :is_read WHERE id = :id AND user_id = :user_id"),
        {"is_read": True, "id": notification_id, "user_id": user["id"]},
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="Notification not found")
    db.commit()
    return {"ok": True}
