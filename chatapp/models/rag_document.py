"""
RAG Models - Uploaded text documents and their embedded chunks

Search Architecture:
- embedding: Vector column for semantic search (pgvector cosine similarity)
- chunks are fixed-size character windows with overlap
"""

from sqlalchemy import Column, String, Text, Integer, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from pgvector.sqlalchemy import Vector
import uuid

from chatapp.database import Base
from chatapp.utils.datetime_utils import utcnow


class RagDocument(Base):
    """
    Uploaded RAG document

    Attributes:
        id: Document UUID
        user_id: Owner (registered users only)
        title: Derived from the first line or the file name
        original_filename: Name of the uploaded file
        mime_type: Declared content type of the upload
        size_bytes: Upload size
        content: Full decoded text
        created_at: Upload timestamp

    Relationships:
        chunks: Embedded chunks (one-to-many)

    Cascade Delete:
        - Deleting a document deletes all its chunks
    """

    __tablename__ = "documents"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(Text, nullable=False)
    original_filename = Column(String(512))
    mime_type = Column(String(255))
    size_bytes = Column(Integer)
    content = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user = relationship("User", back_populates="rag_documents")
    chunks = relationship(
        "RagDocumentChunk",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RagDocumentChunk.chunk_index"
    )

    def __repr__(self):
        return f"<RagDocument(id={self.id}, title={self.title})>"


class RagDocumentChunk(Base):
    """
    Document chunk - text window with its vector embedding

    Attributes:
        id: Chunk UUID
        document_id: Parent document
        chunk_index: Sequential index within document (0-based)
        content: Chunk text
        embedding: Vector embedding (1536 dimensions, text-embedding-3-small)
        created_at: Creation timestamp

    Uniqueness:
        - (document_id, chunk_index) is unique per document
    """

    __tablename__ = "document_chunks"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    document_id = Column(UUID(as_uuid=True), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    chunk_index = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    embedding = Column(Vector(1536), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("document_id", "chunk_index", name="uq_document_chunk_index"),
    )

    document = relationship("RagDocument", back_populates="chunks")

    def __repr__(self):
        return f"<RagDocumentChunk(id={self.id}, document_id={self.document_id}, chunk_index={self.chunk_index})>"
