"""
History API endpoint
Cursor-paginated chat history of the current user
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from chatapp.database import get_db
from chatapp.core.exceptions import ChatError
from chatapp.api.deps import get_optional_session_user
from chatapp.models.chat import Chat
from chatapp.schemas.auth import SessionUser
from chatapp.schemas.chat import ChatResponse, HistoryResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/history", tags=["history"])


@router.get("", response_model=HistoryResponse)
async def get_history(
    limit: int = Query(10, ge=1, le=100),
    starting_after: Optional[UUID] = None,
    ending_before: Optional[UUID] = None,
    db: Session = Depends(get_db),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user)
):
    """
    List the user's chats, newest first

    Pagination:
        starting_after: chats created after the given chat
        ending_before: chats created before the given chat (next page)

    Returns:
        {chats, hasMore}
    """
    if starting_after and ending_before:
        raise ChatError("bad_request:api", "Only one of starting_after or ending_before can be provided.")

    if session_user is None:
        raise ChatError("unauthorized:chat")

    if not session_user.is_persisted:
        return HistoryResponse(chats=[], has_more=False)

    query = db.query(Chat).filter(Chat.user_id == session_user.uuid)

    cursor_id = starting_after or ending_before
    if cursor_id:
        cursor = db.query(Chat).filter(Chat.id == cursor_id).first()
        if not cursor:
            raise ChatError("not_found:database", f"Chat with id {cursor_id} not found")

        if starting_after:
            query = query.filter(Chat.created_at > cursor.created_at)
        else:
            query = query.filter(Chat.created_at < cursor.created_at)

    chats = query.order_by(Chat.created_at.desc()).limit(limit + 1).all()

    return HistoryResponse(
        chats=[ChatResponse.model_validate(c) for c in chats[:limit]],
        has_more=len(chats) > limit,
    )
