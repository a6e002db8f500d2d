"""
Pydantic Schemas for artifact documents, suggestions and votes
"""

from pydantic import Field
from typing import Literal, Optional
from uuid import UUID

from chatapp.schemas.common import APIModel, UTCDateTime

DocumentKind = Literal["text", "code", "image", "sheet"]


class DocumentCreate(APIModel):
    """Schema for saving a new version of a document"""
    title: str = Field(..., min_length=1, description="Document title")
    content: str = Field("", description="Document body")
    kind: DocumentKind = "text"


class DocumentResponse(APIModel):
    """One version of a document"""
    id: UUID
    created_at: UTCDateTime
    title: str
    content: Optional[str] = None
    kind: DocumentKind
    user_id: UUID


class SuggestionResponse(APIModel):
    """Suggested edit for a document version"""
    id: UUID
    document_id: UUID
    document_created_at: UTCDateTime
    original_text: str
    suggested_text: str
    description: Optional[str] = None
    is_resolved: bool
    user_id: UUID
    created_at: UTCDateTime


class VoteRequest(APIModel):
    """Body of PATCH /api/vote"""
    chat_id: UUID
    message_id: UUID
    type: Literal["up", "down"]


class VoteResponse(APIModel):
    """Stored vote"""
    chat_id: UUID
    message_id: UUID
    is_upvoted: bool
