"""
User Model - Chat app identities (registered and guest)
"""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid

from chatapp.database import Base
from chatapp.utils.datetime_utils import utcnow


class User(Base):
    """
    User model for the chat app

    Attributes:
        id: Unique user identifier (UUID)
        email: User email (unique). Guests get a generated "guest-<ms>" address
        password: Bcrypt hashed password, None for guest users
        type: "regular" or "guest"
        status: "active" or "banned" (toggled from the admin back-office)
        created_at: Account creation timestamp
        updated_at: Last modification timestamp

    Relationships:
        chats: User's chats (one-to-many)
        settings: Per-user chat settings (one-to-one)
        templates: Prompt templates (one-to-many)
        rag_documents: Uploaded RAG documents (one-to-many)
    """

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(64), unique=True, nullable=False, index=True)
    password = Column(String(64), nullable=True)
    type = Column(String(16), nullable=False, default="regular")
    status = Column(String(16), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    chats = relationship("Chat", back_populates="user", cascade="all, delete-orphan")
    settings = relationship("UserSettings", back_populates="user", uselist=False, cascade="all, delete-orphan")
    templates = relationship("PromptTemplate", back_populates="user", cascade="all, delete-orphan")
    rag_documents = relationship("RagDocument", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_guest(self) -> bool:
        return self.type == "guest"

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, type={self.type})>"
