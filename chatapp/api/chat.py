"""
Chat API endpoints
Conversational AI with UI message streaming over SSE and resumable streams
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response, StreamingResponse
from pydantic import ValidationError
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from chatapp.database import get_db, get_session_factory
from chatapp.core.exceptions import ChatError
from chatapp.api.deps import get_optional_session_user, get_stream_context_dependency
from chatapp.middleware.rate_limiter import chat_rate_limit
from chatapp.models.chat import Chat
from chatapp.schemas.auth import SessionUser
from chatapp.schemas.chat import (
    PostRequestBody,
    ChatResponse,
    ChatWithMessagesResponse,
    MessageResponse,
    VisibilityUpdate,
)
from chatapp.services.chat_service import ChatService
from chatapp.streaming.ui_stream import SSE_DONE, SSE_HEADERS, SSE_MEDIA_TYPE
from chatapp.utils.sanitize import sanitize_string

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/chat", tags=["chat"])


def _sse_response(body) -> StreamingResponse:
    return StreamingResponse(body, media_type=SSE_MEDIA_TYPE, headers=SSE_HEADERS)


async def _single_part_stream(*chunks: str):
    for chunk in chunks:
        yield chunk


def _require_session(session_user: Optional[SessionUser]) -> SessionUser:
    if session_user is None:
        raise ChatError("unauthorized:chat")
    return session_user


def _owned_by(chat: Chat, session_user: SessionUser) -> bool:
    return session_user.is_persisted and chat.user_id == session_user.uuid


@router.post(
    "",
    responses={
        200: {
            "description": "UI message stream (SSE)",
            "content": {"text/event-stream": {"schema": {"type": "string"}}}
        }
    }
)
@chat_rate_limit()
async def post_chat(
    request: Request,
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user),
    stream_context=Depends(get_stream_context_dependency)
):
    """
    Send a user message and stream the assistant response

    Request Format:
        ```json
        {
          "id": "chat-uuid",
          "message": {"id": "message-uuid", "role": "user",
                      "parts": [{"type": "text", "text": "Hello"}]},
          "selectedChatModel": "chat-model",
          "selectedVisibilityType": "private"
        }
        ```

    Streaming Response (SSE):
        ```
        data: {"type": "start", "messageId": "..."}
        data: {"type": "start-step"}
        data: {"type": "text-start", "id": "..."}
        data: {"type": "text-delta", "id": "...", "delta": "Hi"}
        data: {"type": "text-end", "id": "..."}
        data: {"type": "finish-step"}
        data: {"type": "data-usage", "data": {...}}
        data: {"type": "finish"}
        data: [DONE]
        ```

    Errors (JSON):
        bad_request:api, unauthorized:chat, rate_limit:chat,
        forbidden:chat, offline:chat
    """
    try:
        payload = await request.json()
        body = PostRequestBody.model_validate(payload)
    except (ValueError, ValidationError) as e:
        logger.info(f"Rejected chat request body: {sanitize_string(str(e))}")
        raise ChatError("bad_request:api")

    session_user = _require_session(session_user)
    chat_service = ChatService(db, session_factory=session_factory)

    try:
        prepared = await chat_service.prepare(body, session_user)
    except ChatError:
        raise
    except Exception as e:
        logger.error(f"Chat request failed before streaming for chat {body.id}: {e}")
        raise ChatError("offline:chat")

    def make_stream():
        return chat_service.stream(prepared)

    if stream_context is not None and prepared.stream_id:
        try:
            resumable = await stream_context.resumable_stream(prepared.stream_id, make_stream)
            if resumable is not None:
                return _sse_response(resumable)
        except RedisError as e:
            logger.warning(f"Resumable stream unavailable, streaming directly: {e}")

    return _sse_response(make_stream())


@router.delete("", response_model=ChatResponse)
async def delete_chat(
    id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user)
):
    """
    Delete a chat with its messages, votes and stream ids

    Returns:
        The deleted chat
    """
    if id is None:
        raise ChatError("bad_request:api")

    session_user = _require_session(session_user)
    chat_service = ChatService(db)

    chat = chat_service.get_chat(id)
    if not chat:
        raise ChatError("not_found:chat")
    if not _owned_by(chat, session_user):
        raise ChatError("forbidden:chat")

    deleted = ChatResponse.model_validate(chat)
    chat_service.delete_chat(chat)
    return deleted


@router.get("/{chat_id}", response_model=ChatWithMessagesResponse)
async def get_chat(
    chat_id: UUID,
    db: Session = Depends(get_db),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user)
):
    """
    Get a chat with its messages

    Public chats are readable by anyone; private chats only by their owner.
    """
    chat_service = ChatService(db)
    chat = chat_service.get_chat(chat_id)
    if not chat:
        raise ChatError("not_found:chat")

    if chat.visibility == "private":
        session_user = _require_session(session_user)
        if not _owned_by(chat, session_user):
            raise ChatError("forbidden:chat")

    response = ChatWithMessagesResponse.model_validate(chat)
    response.messages = [
        MessageResponse.model_validate(m) for m in chat_service.get_messages(chat_id)
    ]
    return response


@router.patch("/{chat_id}/visibility", response_model=ChatResponse)
async def update_visibility(
    chat_id: UUID,
    update: VisibilityUpdate,
    db: Session = Depends(get_db),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user)
):
    """Change chat visibility (owner only)"""
    session_user = _require_session(session_user)

    chat = db.query(Chat).filter(Chat.id == chat_id).first()
    if not chat:
        raise ChatError("not_found:chat")
    if not _owned_by(chat, session_user):
        raise ChatError("forbidden:chat")

    chat.visibility = update.visibility.value
    db.commit()
    db.refresh(chat)
    logger.info(f"Chat {chat_id} visibility set to {chat.visibility}")
    return chat


@router.get(
    "/{chat_id}/stream",
    responses={
        200: {"content": {"text/event-stream": {"schema": {"type": "string"}}}},
        204: {"description": "Resumable streams are disabled"}
    }
)
async def resume_stream(
    chat_id: UUID,
    db: Session = Depends(get_db),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user),
    stream_context=Depends(get_stream_context_dependency)
):
    """
    Re-attach to the most recent stream of a chat

    Behavior:
    - Stream still running: replay it from the start and follow it live
    - Stream concluded: if the last message is an assistant message from the
      last 15 seconds, send it once as a transient data-appendMessage part;
      otherwise send an empty stream
    """
    if stream_context is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    session_user = _require_session(session_user)
    chat_service = ChatService(db)

    chat = chat_service.get_chat(chat_id)
    if not chat:
        raise ChatError("not_found:chat")
    if chat.visibility == "private" and not _owned_by(chat, session_user):
        raise ChatError("forbidden:chat")

    stream_ids = chat_service.get_stream_ids(chat_id)
    if not stream_ids:
        raise ChatError("not_found:stream")

    recent_stream_id = stream_ids[-1]
    try:
        stream = await stream_context.resume_existing_stream(recent_stream_id)
    except RedisError as e:
        logger.warning(f"Resumable stream unavailable for chat {chat_id}: {e}")
        stream = None
    if stream is not None:
        return _sse_response(stream)

    restore_part = chat_service.build_restore_part(chat_id)
    if restore_part is None:
        return _sse_response(_single_part_stream())

    return _sse_response(_single_part_stream(restore_part.to_sse(), SSE_DONE))
