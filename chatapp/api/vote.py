"""
Vote API endpoints
Up/down votes on assistant messages
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from chatapp.database import get_db
from chatapp.core.exceptions import ChatError
from chatapp.api.deps import get_optional_session_user
from chatapp.models.chat import Chat
from chatapp.models.vote import Vote
from chatapp.schemas.auth import SessionUser
from chatapp.schemas.document import VoteRequest, VoteResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/vote", tags=["vote"])


def _get_owned_chat(db: Session, chat_id: UUID, session_user: SessionUser) -> Chat:
    chat = db.query(Chat).filter(Chat.id == chat_id).first()
    if not chat:
        raise ChatError("not_found:chat")
    if not session_user.is_persisted or chat.user_id != session_user.uuid:
        raise ChatError("forbidden:vote")
    return chat


@router.get("", response_model=List[VoteResponse])
async def get_votes(
    chatId: Optional[UUID] = None,
    db: Session = Depends(get_db),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user)
):
    """List the votes of a chat (owner only)"""
    if chatId is None:
        raise ChatError("bad_request:api", "Parameter chatId is required.")
    if session_user is None:
        raise ChatError("unauthorized:vote")

    _get_owned_chat(db, chatId, session_user)
    return db.query(Vote).filter(Vote.chat_id == chatId).all()


@router.patch("", response_model=VoteResponse)
async def vote_message(
    request: Request,
    db: Session = Depends(get_db),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user)
):
    """
    Up- or down-vote a message

    Request Format:
        ```json
        {"chatId": "...", "messageId": "...", "type": "up"}
        ```
    """
    try:
        body = VoteRequest.model_validate(await request.json())
    except (ValueError, ValidationError):
        raise ChatError("bad_request:api", "Parameters chatId, messageId, and type are required.")

    if session_user is None:
        raise ChatError("unauthorized:vote")

    _get_owned_chat(db, body.chat_id, session_user)

    vote = db.query(Vote).filter(
        Vote.chat_id == body.chat_id,
        Vote.message_id == body.message_id
    ).first()

    if vote:
        vote.is_upvoted = body.type == "up"
    else:
        vote = Vote(chat_id=body.chat_id, message_id=body.message_id, is_upvoted=body.type == "up")
        db.add(vote)

    db.commit()
    db.refresh(vote)
    logger.info(f"Message {body.message_id} voted {body.type}")
    return vote
