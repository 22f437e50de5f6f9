import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Enum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from deva.database.config import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


WORK_TYPES = ("bug", "documentation", "testing", "feature", "infrastructure", "research")


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=_uuid)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    linear_user_id = Column(String, nullable=True)

    default_team = Column(String, nullable=True)
    default_priority = Column(
        Enum("critical", "high", "medium", "low", name="priority"), default="medium", nullable=False
    )
    default_labels = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    status = Column(
        Enum("active", "completed", "abandoned", name="conversation_status"),
        default="active",
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, index=True, nullable=False)

    messages = relationship(
        "ConversationMessage",
        back_populates="conversation",
        order_by="ConversationMessage.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class ConversationMessage(Base):
    __tablename__ = "conversation_messages"

    id = Column(String, primary_key=True, default=_uuid)
    conversation_id = Column(String, ForeignKey("conversations.id"), index=True, nullable=False)
    position = Column(Integer, nullable=False)
    role = Column(Enum("user", "assistant", "system", name="message_role"), nullable=False)
    content = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    issue_preview = Column(JSON, nullable=True)

    conversation = relationship("Conversation", back_populates="messages")


class IssueHistory(Base):
    __tablename__ = "issue_history"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    original_input = Column(Text, nullable=False)
    work_type = Column(Enum(*WORK_TYPES, name="work_type"), nullable=False)
    final_issue = Column(JSON, nullable=False)
    corrections = Column(JSON, nullable=False, default=list)
    confidence = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True, nullable=False)
