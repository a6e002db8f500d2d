"""
Document Model - Versioned artifacts produced during chats
Suggestion Model - Edit suggestions attached to a document version
"""

from sqlalchemy import (
    Column, String, Text, Boolean, ForeignKey, DateTime, ForeignKeyConstraint
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid

from chatapp.database import Base
from chatapp.utils.datetime_utils import utcnow


class Document(Base):
    """
    Artifact document. Every save is a new version sharing the same id.

    Attributes:
        id: Document UUID (shared by all versions)
        created_at: Version timestamp (part of the primary key)
        title: Document title
        content: Document body
        kind: text, code, image or sheet
        user_id: Document owner

    Relationships:
        suggestions: Suggestions for this version (one-to-many)
    """

    __tablename__ = "document"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), primary_key=True, default=utcnow)
    title = Column(Text, nullable=False)
    content = Column(Text)
    kind = Column(String(10), nullable=False, default="text")
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    suggestions = relationship("Suggestion", back_populates="document", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Document(id={self.id}, created_at={self.created_at}, kind={self.kind})>"


class Suggestion(Base):
    """
    Suggestion model - proposed rewrite of a passage in a document version

    Attributes:
        id: Suggestion UUID
        document_id, document_created_at: Target document version
        original_text: Passage to replace
        suggested_text: Replacement
        description: Why the change is proposed
        is_resolved: Whether the suggestion was applied or dismissed
        user_id: Owner
        created_at: Creation timestamp
    """

    __tablename__ = "suggestion"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    document_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    document_created_at = Column(DateTime(timezone=True), nullable=False)
    original_text = Column(Text, nullable=False)
    suggested_text = Column(Text, nullable=False)
    description = Column(Text)
    is_resolved = Column(Boolean, nullable=False, default=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        ForeignKeyConstraint(
            ["document_id", "document_created_at"],
            ["document.id", "document.created_at"],
            ondelete="CASCADE",
        ),
    )

    document = relationship("Document", back_populates="suggestions")

    def __repr__(self):
        return f"<Suggestion(id={self.id}, document_id={self.document_id})>"
