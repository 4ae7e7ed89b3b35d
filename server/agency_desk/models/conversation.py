from __future__ import annotations

from enum import Enum

from sqlalchemy import Enum as SAEnum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agency_desk.db.base import Base
from agency_desk.models.mixins import AgencyScopedMixin, Identifier, Timestamp, TimestampMixin


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class AIConversation(AgencyScopedMixin, TimestampMixin, Base):
    __tablename__ = "ai_conversations"

    id: Mapped[Identifier]
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    context_type: Mapped[str] = mapped_column(String(40), default="general", nullable=False)
    context_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    messages: Mapped[list["AIMessage"]] = relationship(
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="AIMessage.created_at",
        lazy="raise",
    )


class AIMessage(Base):
    __tablename__ = "ai_messages"

    id: Mapped[Identifier]
    conversation_id: Mapped[str] = mapped_column(
        ForeignKey("ai_conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[MessageRole] = mapped_column(SAEnum(MessageRole), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    tokens_used: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[Timestamp]

    conversation: Mapped[AIConversation] = relationship(back_populates="messages", lazy="raise")
