from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from agency_desk.core.logging import get_logger
from agency_desk.models.conversation import AIConversation, AIMessage, MessageRole
from agency_desk.models.mixins import utcnow
from agency_desk.models.user import User
from agency_desk.schemas.conversation import ConversationCreate, ConversationSummary
from agency_desk.services.llm_client import AssistantClient, ChatTurn, demo_reply

logger = get_logger(__name__)

TITLE_LENGTH = 100
PREVIEW_LENGTH = 100
DEFAULT_TITLE = "New Conversation"


class ConversationNotFound(LookupError):
    pass


@dataclass(slots=True)
class ChatResult:
    conversation_id: str
    response: str
    tokens_used: int | None
    demo: bool


async def get_conversation(
    session: AsyncSession, user: User, conversation_id: str, *, with_messages: bool = False
) -> AIConversation:
    query = select(AIConversation).where(
        AIConversation.id == conversation_id,
        AIConversation.user_id == user.id,
        AIConversation.agency_id == user.agency_id,
    )
    if with_messages:
        query = query.options(selectinload(AIConversation.messages))
    conversation = (await session.execute(query)).scalars().first()
    if conversation is None:
        raise ConversationNotFound(conversation_id)
    return conversation


async def list_conversations(
    session: AsyncSession, user: User, *, limit: int = 20, offset: int = 0
) -> list[ConversationSummary]:
    result = await session.execute(
        select(AIConversation)
        .where(AIConversation.user_id == user.id, AIConversation.agency_id == user.agency_id)
        .options(selectinload(AIConversation.messages))
        .order_by(AIConversation.updated_at.desc())
        .offset(offset)
        .limit(limit)
    )
    summaries = []
    for conversation in result.scalars().all():
        last = conversation.messages[-1] if conversation.messages else None
        summaries.append(
            ConversationSummary(
                id=conversation.id,
                title=conversation.title or DEFAULT_TITLE,
                context_type=conversation.context_type,
                context_id=conversation.context_id,
                created_at=conversation.created_at,
                updated_at=conversation.updated_at,
                last_message=last.content[:PREVIEW_LENGTH] if last else "",
                last_message_role=last.role if last else None,
                message_count=len(conversation.messages),
            )
        )
    return summaries


async def create_conversation(session: AsyncSession, user: User, data: ConversationCreate) -> AIConversation:
    conversation = AIConversation(
        agency_id=user.agency_id,
        user_id=user.id,
        title=data.title or DEFAULT_TITLE,
        context_type=data.context_type,
        context_id=data.context_id,
    )
    session.add(conversation)
    await session.flush()
    return conversation


async def rename_conversation(session: AsyncSession, conversation: AIConversation, title: str) -> AIConversation:
    conversation.title = title
    await session.flush()
    return conversation


async def delete_conversation(session: AsyncSession, conversation: AIConversation) -> None:
    await session.delete(conversation)
    await session.flush()


async def _recent_history(session: AsyncSession, conversation_id: str, limit: int) -> Sequence[AIMessage]:
    result = await session.execute(
        select(AIMessage)
        .where(AIMessage.conversation_id == conversation_id)
        .order_by(AIMessage.created_at.desc())
        .limit(limit)
    )
    return list(reversed(result.scalars().all()))


async def send_message(
    session: AsyncSession,
    user: User,
    message: str,
    *,
    assistant: AssistantClient | None,
    conversation_id: str | None = None,
    history_limit: int = 20,
) -> ChatResult:
    """
    Store the user's message, ask the assistant, and store its reply.

    Without a configured assistant a canned demo reply is stored instead so
    the conversation flow still works end to end.
    """
    if conversation_id:
        conversation = await get_conversation(session, user, conversation_id)
    else:
        conversation = AIConversation(
            agency_id=user.agency_id,
            user_id=user.id,
            title=message[:TITLE_LENGTH],
            context_type="general",
        )
        session.add(conversation)
        await session.flush()

    session.add(AIMessage(conversation_id=conversation.id, role=MessageRole.USER, content=message))
    await session.flush()

    if assistant is None:
        reply = demo_reply(message)
    else:
        history = await _recent_history(session, conversation.id, history_limit)
        turns = [ChatTurn(role=item.role.value, content=item.content) for item in history]
        reply = await assistant.reply(turns)

    session.add(
        AIMessage(
            conversation_id=conversation.id,
            role=MessageRole.ASSISTANT,
            content=reply.content,
            tokens_used=reply.tokens_used,
        )
    )
    conversation.updated_at = utcnow()
    await session.flush()
    logger.info(
        "assistant.reply_stored",
        conversation_id=conversation.id,
        user_id=user.id,
        tokens_used=reply.tokens_used,
        demo=assistant is None,
    )
    return ChatResult(
        conversation_id=conversation.id,
        response=reply.content,
        tokens_used=reply.tokens_used,
        demo=assistant is None,
    )
