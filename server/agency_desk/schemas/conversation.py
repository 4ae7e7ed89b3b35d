from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, Field

from agency_desk.models.conversation import MessageRole
from agency_desk.schemas.common import ORMModel, Timestamped


class ChatRequest(BaseModel):
    message: str = Field(min_length=1, max_length=8000)
    conversation_id: str | None = None


class StreamMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(min_length=1, max_length=8000)


class StreamChatRequest(BaseModel):
    """Stateless chat: the caller sends the whole history and nothing is stored."""

    messages: List[StreamMessage] = Field(default_factory=list)


class ChatResponse(BaseModel):
    response: str
    conversation_id: str
    tokens_used: int | None = None
    demo: bool = False


class MessageRead(ORMModel):
    id: str
    role: MessageRole
    content: str
    tokens_used: int | None = None
    created_at: datetime


class ConversationCreate(BaseModel):
    title: str | None = Field(default=None, max_length=255)
    context_type: str = Field(default="general", max_length=40)
    context_id: str | None = None


class ConversationUpdate(BaseModel):
    title: str = Field(min_length=1, max_length=255)


class ConversationRead(Timestamped):
    id: str
    title: str | None = None
    context_type: str
    context_id: str | None = None


class ConversationSummary(ConversationRead):
    last_message: str = ""
    last_message_role: MessageRole | None = None
    message_count: int = 0


class ConversationDetail(ConversationRead):
    messages: List[MessageRead] = Field(default_factory=list)


class ConversationCollection(BaseModel):
    conversations: List[ConversationSummary]
