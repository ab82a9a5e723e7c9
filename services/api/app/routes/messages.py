"""Direct messaging between users.

Conversations have two or more participants. A one-on-one conversation is
unique per pair: asking for a new one with the same counterpart returns the
existing conversation. Read state is per participant: messages from others
sent after the participant's `last_read_at` are unread for that participant.
`messages.is_read` only records that some recipient has opened the
conversation since the message was sent.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import bindparam, text
from sqlalchemy.orm import Session

from ..activity import create_notification, message_preview, unread_message_count
from ..db import get_db, new_id, utcnow
from ..rate_limit import RATE_LIMITS, rate_limited
from ..schemas import ConversationCreateIn, MessageIn
from ..security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["messages"])

_read_limit = Depends(rate_limited(RATE_LIMITS["api_read"], "api_read"))
_write_limit = Depends(rate_limited(RATE_LIMITS["api_write"], "api_write"))

_DISPLAY_NAME = "COALESCE(p.full_name, co.full_name, u.email)"


def _require_participant(db: Session, conversation_id: str, user_id: str) -> None:
    conversation = db.execute(
        text("SELECT 1 FROM conversations WHERE id = :id"),
        {"id": conversation_id},
    ).first()
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")

    participant = db.execute(
        text("""
            SELECT 1 FROM conversation_participants
            WHERE conversation_id = :conversation_id AND user_id = :user_id
        """),
        {"conversation_id": conversation_id, "user_id": user_id},
    ).first()
    if not participant:
        raise HTTPException(status_code=403, detail="Not a participant in this conversation")


def _find_direct_conversation(db: Session, user_id: str, other_id: str) -> str | None:
    row = db.execute(
        text("""
            SELECT a.conversation_id
            FROM conversation_participants a
            JOIN conversation_participants b ON b.conversation_id = a.conversation_id
            WHERE a.user_id = :user_id
              AND b.user_id = :other_id
              AND (
                SELECT COUNT(*) FROM conversation_participants c
                WHERE c.conversation_id = a.conversation_id
              ) = 2
            LIMIT 1
        """),
        {"user_id": user_id, "other_id": other_id},
    ).mappings().first()
    return row["conversation_id"] if row else None


@router.post("/conversations", dependencies=[_write_limit])
def create_conversation(
    payload: ConversationCreateIn,
    user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Start (or reuse) a conversation with the given users.

    Returns:
        dict: `{ "ok": true, "conversation_id": ..., "created": bool }`.

    Raises:
        HTTPException: 400 when no other participant is given; 404 for an unknown user.
    """
    others = sorted({uid for uid in payload.participant_user_ids if uid != user["id"]})
    if not others:
        raise HTTPException(status_code=400, detail="At least one other participant is required")

    found = db.execute(
        text("SELECT id FROM users WHERE id IN :ids").bindparams(bindparam("ids", expanding=True)),
        {"ids": others},
    ).scalars().all()
    if len(found) != len(others):
        raise HTTPException(status_code=404, detail="Participant not found")

    if len(others) == 1:
        existing = _find_direct_conversation(db, user["id"], others[0])
        if existing:
            return {"ok": True, "conversation_id": existing, "created": False}

    now = utcnow()
    conversation_id = new_id()
    db.execute(
        text("INSERT INTO conversations (id, created_at, updated_at) VALUES (:id, :now, :now)"),
        {"id": conversation_id, "now": now},
    )
    for participant_id in [user["id"], *others]:
        db.execute(
            text("""
                INSERT INTO conversation_participants (id, conversation_id, user_id, last_read_at)
                VALUES (:id, :conversation_id, :user_id, :last_read_at)
            """),
            {"id": new_id(), "conversation_id": conversation_id, "user_id": participant_id, "last_read_at": now},
        )
    db.commit()

    logger.info("conversation created", extra={"conversation_id": conversation_id, "participants": len(others) + 1})
    return {"ok": True, "conversation_id": conversation_id, "created": True}


@router.get("/conversations", dependencies=[_read_limit])
def list_conversations(user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    """The caller's conversations, most recent activity first.

    Each item has the other participants, the last message and the number of
    unread messages from others.
    """
    conversations = db.execute(
        text("""
            SELECT c.id, c.created_at, c.updated_at, cp.last_read_at
            FROM conversations c
            JOIN conversation_participants cp ON cp.conversation_id = c.id
            WHERE cp.user_id = :user_id
            ORDER BY c.updated_at DESC
        """),
        {"user_id": user["id"]},
    ).mappings().all()

    items = []
    for conv in conversations:
        params = {"conversation_id": conv["id"], "user_id": user["id"]}
        participants = db.execute(
            text(f"""
                SELECT u.id AS user_id, u.role, {_DISPLAY_NAME} AS name
                FROM conversation_participants cp
                JOIN users u ON u.id = cp.user_id
                LEFT JOIN players p ON p.user_id = u.id
                LEFT JOIN coaches co ON co.user_id = u.id
                WHERE cp.conversation_id = :conversation_id AND cp.user_id <> :user_id
                ORDER BY name
            """),
            params,
        ).mappings().all()

        last_message = db.execute(
            text("""
                SELECT id, sender_id, content, sent_at
                FROM messages
                WHERE conversation_id = :conversation_id
                ORDER BY sent_at DESC
                LIMIT 1
            """),
            {"conversation_id": conv["id"]},
        ).mappings().first()

        unread = db.execute(
            text("""
                SELECT COUNT(*)
                FROM messages m
                JOIN conversation_participants cp
                  ON cp.conversation_id = m.conversation_id AND cp.user_id = :user_id
                WHERE m.conversation_id = :conversation_id
                  AND m.sender_id <> :user_id
                  AND (cp.last_read_at IS NULL OR m.sent_at > cp.last_read_at)
            """),
            params,
        ).scalar_one()

        items.append({
            "id": conv["id"],
            "updated_at": conv["updated_at"],
            "last_read_at": conv["last_read_at"],
            "participants": list(participants),
            "last_message": dict(last_message) if last_message else None,
            "unread_count": int(unread),
        })

    return {"ok": True, "conversations": items}


@router.get("/conversations/{conversation_id}/messages", dependencies=[_read_limit])
def get_messages(conversation_id: str, user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    _require_participant(db, conversation_id, user["id"])
    rows = db.execute(
        text(f"""
            SELECT m.id, m.sender_id, m.content, m.sent_at, m.is_read, {_DISPLAY_NAME} AS sender_name
            FROM messages m
            JOIN users u ON u.id = m.sender_id
            LEFT JOIN players p ON p.user_id = u.id
            LEFT JOIN coaches co ON co.user_id = u.id
            WHERE m.conversation_id = :conversation_id
            ORDER BY m.sent_at ASC
        """),
        {"conversation_id": conversation_id},
    ).mappings().all()
    return {"ok": True, "messages": list(rows)}


@router.post("/conversations/{conversation_id}/messages", status_code=201, dependencies=[_write_limit])
def send_message(
    conversation_id: str,
    payload: MessageIn,
    user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Send a message and notify the other participants.

    Raises:
        HTTPException: 404 for an unknown conversation; 403 if the caller is not a participant.
    """
    _require_participant(db, conversation_id, user["id"])

    now = utcnow()
    message_id = new_id()
    db.execute(
        text("""
            INSERT INTO messages (id, conversation_id, sender_id, content, sent_at, is_read)
            VALUES (:id, :conversation_id, :sender_id, :content, :sent_at, :is_read)
        """),
        {
            "id": message_id,
            "conversation_id": conversation_id,
            "sender_id": user["id"],
            "content": payload.content,
            "sent_at": now,
            "is_read": False,
        },
    )
    db.execute(
        text("UPDATE conversations SET updated_at = :now WHERE id = :id"),
        {"now": now, "id": conversation_id},
    )

    sender_name = db.execute(
        text(f"""
            SELECT {_DISPLAY_NAME}
            FROM users u
            LEFT JOIN players p ON p.user_id = u.id
            LEFT JOIN coaches co ON co.user_id = u.id
            WHERE u.id = :user_id
        """),
        {"user_id": user["id"]},
    ).scalar_one()

    recipients = db.execute(
        text("""
            SELECT user_id FROM conversation_participants
            WHERE conversation_id = :conversation_id AND user_id <> :user_id
        """),
        {"conversation_id": conversation_id, "user_id": user["id"]},
    ).scalars().all()
    for recipient_id in recipients:
        create_notification(
            db,
            recipient_id,
            "new_message",
            f"New message from {sender_name}",
            body=message_preview(payload.content),
            action_url=f"/messages/{conversation_id}",
        )
    db.commit()

    return {
        "ok": True,
        "message": {
            "id": message_id,
            "conversation_id": conversation_id,
            "sender_id": user["id"],
            "content": payload.content,
            "sent_at": now,
        },
    }


@router.post("/conversations/{conversation_id}/read", dependencies=[_write_limit])
def mark_conversation_read(conversation_id: str, user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    _require_participant(db, conversation_id, user["id"])
    params = {"conversation_id": conversation_id, "user_id": user["id"]}
    db.execute(
        text("""
            UPDATE conversation_participants SET last_read_at = :now
            WHERE conversation_id = :conversation_id AND user_id = :user_id
        """),
        {**params, "now": utcnow()},
    )
    db.execute(
        text("""
            UPDATE messages SET is_read = :is_read
            WHERE conversation_id = :conversation_id AND sender_id <> :user_id
        """),
        {**params, "is_read": True},
    )
    db.commit()
    return {"ok": True}


@router.get("/messages/unread-count", dependencies=[_read_limit])
def unread_count(user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"ok": True, "unread": unread_message_count(db, user["id"])}

