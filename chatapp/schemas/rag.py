"""
Pydantic Schemas for RAG uploads
"""

from uuid import UUID

from chatapp.schemas.common import APIModel, UTCDateTime


class RagUploadResponse(APIModel):
    """Result of POST /api/rag/upload"""
    document_id: UUID
    document_title: str
    original_filename: str
    chunk_count: int


class RagChunkPreview(APIModel):
    """Chunk summary returned by the debug endpoint"""
    id: UUID
    chunk_index: int
    preview: str
    has_embedding: bool
    created_at: UTCDateTime
