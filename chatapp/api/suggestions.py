"""
Suggestions API endpoint
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from chatapp.database import get_db
from chatapp.core.exceptions import ChatError
from chatapp.api.deps import get_optional_session_user
from chatapp.models.document import Document, Suggestion
from chatapp.schemas.auth import SessionUser
from chatapp.schemas.document import SuggestionResponse

router = APIRouter(prefix="/suggestions", tags=["document"])


@router.get("", response_model=List[SuggestionResponse])
async def get_suggestions(
    documentId: Optional[UUID] = None,
    db: Session = Depends(get_db),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user)
):
    """Suggestions for a document (owner only)"""
    if documentId is None:
        raise ChatError("bad_request:api", "Parameter documentId is required.")

    if session_user is None or not session_user.is_persisted:
        raise ChatError("unauthorized:suggestions")

    document = db.query(Document).filter(Document.id == documentId).first()
    if document and document.user_id != session_user.uuid:
        raise ChatError("forbidden:suggestions")

    return db.query(Suggestion).filter(
        Suggestion.document_id == documentId
    ).order_by(Suggestion.created_at.asc()).all()
