# app/api/chat/services.py

import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.agent.completion import CompletionOrchestrator
from app.core.exceptions import PersistenceError, ValidationError
from app.db.models.message import Message, MessageRole

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 1000
DEFAULT_RECENT_LIMIT = 50


# ---------------------------------------------------
# 🗄️ Conversation Store
# ---------------------------------------------------

def append_message(db: Session, content: str, role: MessageRole) -> Message:
    """Persist one message and return it with its generated id and created_at."""
    message = Message(content=content, role=MessageRole(role))
    db.add(message)
    try:
        db.commit()
        db.refresh(message)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to append %s message (length=%d): %s", role, len(content), type(e).__name__)
        raise PersistenceError("Failed to save message") from e

    logger.info("Appended message id=%s role=%s length=%d", message.id, message.role.value, len(content))
    return message


def get_recent_messages(
    db: Session,
    limit: int = DEFAULT_RECENT_LIMIT,
    up_to_id: Optional[int] = None,
) -> List[Message]:
    """Up to `limit` most recent messages, newest first; `up_to_id` excludes later inserts."""
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ValidationError("limit must be a non-negative integer")
    if limit == 0:
        return []

    try:
        query = db.query(Message)
        if up_to_id is not None:
            query = query.filter(Message.id <= up_to_id)
        messages = query\
                     .order_by(Message.created_at.desc(), Message.id.desc())\
                     .limit(limit)\
                     .all()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to retrieve recent messages (limit=%d): %s", limit, type(e).__name__)
        raise PersistenceError("Failed to retrieve messages") from e

    logger.info("Retrieved %d recent messages (limit=%d)", len(messages), limit)
    return messages


# ---------------------------------------------------
# 🤖 Send-Turn Pipeline
# ---------------------------------------------------

def validate_content(content: str) -> str:
    """Return the trimmed content, or raise ValidationError."""
    if not isinstance(content, str):
        raise ValidationError("Message content must be a string")

    trimmed = content.strip()
    if not trimmed:
        raise ValidationError("Message content cannot be empty")
    if len(trimmed) > MAX_CONTENT_LENGTH:
        logger.info("Rejected message of length %d", len(trimmed))
        raise ValidationError("Message too long")
    return trimmed


def build_history(db: Session, user_message: Message, window: int) -> List[dict]:
    """
    Provider input for `user_message`, oldest first: up to `window` messages
    saved no later than it, always ending with `user_message` itself.
    Messages written afterwards by concurrent turns are left out.
    """
    recent = get_recent_messages(db, limit=window, up_to_id=user_message.id)
    earlier = [msg for msg in reversed(recent) if msg.id != user_message.id]
    if len(earlier) >= window:
        earlier = earlier[len(earlier) - window + 1:]
    return [
        {"role": msg.role.value, "content": msg.content}
        for msg in earlier + [user_message]
    ]


def send_message(
    db: Session,
    content: str,
    orchestrator: CompletionOrchestrator,
    history_window: int = 20,
) -> Tuple[Message, Message]:
    """Save the user's message, get the assistant reply, save it, return both."""

    # Step 1: Validate before touching the store
    content = validate_content(content)
    orchestrator.ensure_configured()

    # Step 2: Save user's message
    user_message = append_message(db, content, MessageRole.user)

    # Step 3: Build context; always ends with the message just saved
    history = build_history(db, user_message, max(history_window, 1))

    # Step 4: Get the reply
    reply = orchestrator.complete(history)

    # Step 5: Save assistant message
    assistant_message = append_message(db, reply, MessageRole.assistant)

    return user_message, assistant_message


# ---------------------------------------------------
# 📜 History Read Path
# ---------------------------------------------------

def list_recent(db: Session, limit: int = DEFAULT_RECENT_LIMIT) -> List[Message]:
    return get_recent_messages(db, limit=limit)
