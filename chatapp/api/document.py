"""
Artifact document API endpoints
Versioned documents: every save adds a version sharing the document id
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from chatapp.database import get_db
from chatapp.core.exceptions import ChatError
from chatapp.api.deps import get_optional_session_user
from chatapp.models.document import Document, Suggestion
from chatapp.schemas.auth import SessionUser
from chatapp.schemas.document import DocumentCreate, DocumentResponse
from chatapp.utils.datetime_utils import as_utc, utcnow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/document", tags=["document"])


def _require_user(session_user: Optional[SessionUser]) -> SessionUser:
    if session_user is None or not session_user.is_persisted:
        raise ChatError("unauthorized:document")
    return session_user


def _get_versions(db: Session, document_id: UUID) -> List[Document]:
    return db.query(Document).filter(
        Document.id == document_id
    ).order_by(Document.created_at.asc()).all()


def _check_owner(versions: List[Document], session_user: SessionUser) -> None:
    if versions and versions[0].user_id != session_user.uuid:
        raise ChatError("forbidden:document")


@router.get("", response_model=List[DocumentResponse])
async def get_document(
    id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user)
):
    """All versions of a document, oldest first"""
    if id is None:
        raise ChatError("bad_request:api", "Parameter id is missing")

    session_user = _require_user(session_user)

    versions = _get_versions(db, id)
    if not versions:
        raise ChatError("not_found:document")
    _check_owner(versions, session_user)

    return versions


@router.post("", response_model=DocumentResponse)
async def save_document(
    request: Request,
    id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user)
):
    """
    Save a new version of a document

    Request Format:
        ```json
        {"title": "Essay", "content": "...", "kind": "text"}
        ```
    """
    if id is None:
        raise ChatError("bad_request:api", "Parameter id is required.")

    session_user = _require_user(session_user)

    try:
        body = DocumentCreate.model_validate(await request.json())
    except (ValueError, ValidationError):
        raise ChatError("bad_request:document")

    _check_owner(_get_versions(db, id), session_user)

    document = Document(
        id=id,
        created_at=utcnow(),
        title=body.title,
        content=body.content,
        kind=body.kind,
        user_id=session_user.uuid,
    )
    db.add(document)
    db.commit()
    db.refresh(document)
    logger.info(f"Saved version of document {id}")
    return document


@router.delete("", response_model=List[DocumentResponse])
async def delete_document_versions(
    id: Optional[UUID] = None,
    timestamp: Optional[datetime] = None,
    db: Session = Depends(get_db),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user)
):
    """
    Delete the versions created after `timestamp` and their suggestions

    Returns:
        The deleted versions
    """
    if id is None:
        raise ChatError("bad_request:api", "Parameter id is required.")
    if timestamp is None:
        raise ChatError("bad_request:api", "Parameter timestamp is required.")

    session_user = _require_user(session_user)

    versions = _get_versions(db, id)
    if not versions:
        raise ChatError("not_found:document")
    _check_owner(versions, session_user)

    cutoff = as_utc(timestamp)
    deleted = [v for v in versions if as_utc(v.created_at) > cutoff]
    if not deleted:
        return []

    response = [DocumentResponse.model_validate(v) for v in deleted]

    db.query(Suggestion).filter(
        Suggestion.document_id == id,
        Suggestion.document_created_at > cutoff
    ).delete(synchronize_session=False)
    for version in deleted:
        db.delete(version)
    db.commit()

    logger.info(f"Deleted {len(deleted)} versions of document {id}")
    return response
