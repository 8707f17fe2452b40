# app/db/models/message.py
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, Integer, Text

from app.db.session import Base


class MessageRole(str, enum.Enum):
    user = "user"
    assistant = "assistant"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content = Column(Text, nullable=False)
    role = Column(
        Enum(MessageRole, name="message_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    # Assigned at insertion; the only ordering key (ties broken by id)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
