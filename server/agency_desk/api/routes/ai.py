import json
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from agency_desk.api.dependencies.assistant import get_assistant
from agency_desk.api.dependencies.auth import get_current_user
from agency_desk.api.dependencies.database import get_db
from agency_desk.core.config import get_settings
from agency_desk.core.logging import get_logger
from agency_desk.models.user import User
from agency_desk.schemas.conversation import (
    ChatRequest,
    ChatResponse,
    ConversationCollection,
    ConversationCreate,
    ConversationDetail,
    ConversationRead,
    ConversationUpdate,
    StreamChatRequest,
)
from agency_desk.services.chat_service import (
    ConversationNotFound,
    create_conversation,
    delete_conversation,
    get_conversation,
    list_conversations,
    rename_conversation,
    send_message,
)
from agency_desk.services.llm_client import AssistantClient, AssistantUnavailable, ChatTurn, demo_stream


logger = get_logger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")


@router.post("/chat", response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    assistant: AssistantClient | None = Depends(get_assistant),
) -> ChatResponse:
    try:
        result = await send_message(
            session,
            current_user,
            payload.message,
            assistant=assistant,
            conversation_id=payload.conversation_id,
            history_limit=get_settings().chat_history_limit,
        )
    except ConversationNotFound as exc:
        raise _not_found() from exc
    except AssistantUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    await session.commit()
    return ChatResponse(
        response=result.response,
        conversation_id=result.conversation_id,
        tokens_used=result.tokens_used,
        demo=result.demo,
    )


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


@router.post("/chat/stream")
async def stream_chat(
    payload: StreamChatRequest,
    current_user: User = Depends(get_current_user),
    assistant: AssistantClient | None = Depends(get_assistant),
) -> StreamingResponse:
    if not payload.messages:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Messages are required")

    turns = [ChatTurn(role=message.role, content=message.content) for message in payload.messages]
    if assistant is None:
        fragments = demo_stream(turns[-1].content)
    else:
        fragments = assistant.stream(turns)

    async def events() -> AsyncIterator[str]:
        try:
            async for text in fragments:
                yield _sse({"text": text})
        except AssistantUnavailable:
            logger.warning("assistant.stream_aborted", user_id=current_user.id)
            yield _sse({"error": "Stream error occurred"})
            return
        yield "data: [DONE]\n\n"

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get("/conversations", response_model=ConversationCollection)
async def list_conversations_endpoint(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ConversationCollection:
    conversations = await list_conversations(session, current_user, limit=limit, offset=offset)
    return ConversationCollection(conversations=conversations)


@router.post("/conversations", response_model=ConversationRead, status_code=status.HTTP_201_CREATED)
async def create_conversation_endpoint(
    payload: ConversationCreate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ConversationRead:
    conversation = await create_conversation(session, current_user, payload)
    await session.commit()
    await session.refresh(conversation)
    return ConversationRead.model_validate(conversation)


@router.get("/conversations/{conversation_id}", response_model=ConversationDetail)
async def get_conversation_endpoint(
    conversation_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ConversationDetail:
    try:
        conversation = await get_conversation(session, current_user, conversation_id, with_messages=True)
    except ConversationNotFound as exc:
        raise _not_found() from exc
    return ConversationDetail.model_validate(conversation)


@router.patch("/conversations/{conversation_id}", response_model=ConversationRead)
async def rename_conversation_endpoint(
    conversation_id: str,
    payload: ConversationUpdate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ConversationRead:
    try:
        conversation = await get_conversation(session, current_user, conversation_id)
    except ConversationNotFound as exc:
        raise _not_found() from exc
    await rename_conversation(session, conversation, payload.title)
    await session.commit()
    await session.refresh(conversation)
    return ConversationRead.model_validate(conversation)


@router.delete("/conversations/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation_endpoint(
    conversation_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    try:
        conversation = await get_conversation(session, current_user, conversation_id, with_messages=True)
    except ConversationNotFound as exc:
        raise _not_found() from exc
    await delete_conversation(session, conversation)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
