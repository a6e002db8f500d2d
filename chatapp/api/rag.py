"""
RAG API endpoints
Upload text/markdown documents for retrieval and inspect their chunks
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.orm import Session

from chatapp.database import get_db
from chatapp.core.exceptions import (
    http_400_bad_request,
    http_401_unauthorized,
    http_403_forbidden,
    http_404_not_found,
)
from chatapp.api.deps import get_optional_session_user
from chatapp.middleware.rate_limiter import upload_rate_limit
from chatapp.schemas.auth import SessionUser
from chatapp.schemas.rag import RagChunkPreview, RagUploadResponse
from chatapp.services.rag_service import RagService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/rag", tags=["rag"])

PREVIEW_LENGTH = 200


def get_rag_service(db: Session = Depends(get_db)) -> RagService:
    """Dependency: RAG upload service bound to the request session"""
    return RagService(db)


def _require_registered(session_user: Optional[SessionUser]) -> SessionUser:
    if session_user is None:
        raise http_401_unauthorized("Unauthorized")
    if not session_user.is_persisted or session_user.type != "regular":
        raise http_403_forbidden("Document upload requires a registered account")
    return session_user


@router.post("/upload", response_model=RagUploadResponse)
@upload_rate_limit()
async def upload_document(
    request: Request,
    file: Optional[UploadFile] = File(None),
    service: RagService = Depends(get_rag_service),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user)
):
    """
    Upload a .txt or .md file

    Supported:
    - Extensions: .txt, .md (or MIME text/plain, text/markdown)
    - Max size: 10MB, UTF-8 only

    Returns:
        {documentId, documentTitle, originalFilename, chunkCount}
    """
    session_user = _require_registered(session_user)

    if file is None:
        raise http_400_bad_request("No file provided")

    data = await file.read()
    document, chunk_count = await service.upload(
        user_id=session_user.uuid,
        filename=file.filename,
        content_type=file.content_type,
        data=data,
    )

    return RagUploadResponse(
        document_id=document.id,
        document_title=document.title,
        original_filename=document.original_filename,
        chunk_count=chunk_count,
    )


@router.get("/debug", response_model=List[RagChunkPreview])
async def debug_document(
    documentId: UUID,
    service: RagService = Depends(get_rag_service),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user)
):
    """First 20 chunks of one of the caller's documents"""
    session_user = _require_registered(session_user)

    chunks = service.get_chunk_previews(documentId, session_user.uuid)
    if chunks is None:
        raise http_404_not_found("Document not found")

    return [
        RagChunkPreview(
            id=chunk.id,
            chunk_index=chunk.chunk_index,
            preview=chunk.content[:PREVIEW_LENGTH],
            has_embedding=chunk.embedding is not None,
            created_at=chunk.created_at,
        )
        for chunk in chunks
    ]
