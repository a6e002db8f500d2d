"""
Chat Model - Conversation container
Stores chats with visibility and the usage of the last model call
"""

from sqlalchemy import Column, String, Text, ForeignKey, JSON, DateTime
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
import uuid

from chatapp.database import Base
from chatapp.utils.datetime_utils import utcnow


class Chat(Base):
    """
    Chat model - conversation container

    Attributes:
        id: Chat UUID (chosen by the client on the first message)
        created_at: Chat creation time
        title: Title generated from the first user message
        user_id: Chat owner
        visibility: "private" (owner only) or "public"
        last_context: Token usage of the most recent model call

    Relationships:
        user: Chat owner (many-to-one)
        messages: Chat messages (one-to-many)
        votes: Message votes (one-to-many)
        streams: Stream ids created for this chat (one-to-many)

    Cascade Delete:
        - Deleting user deletes all chats
        - Deleting chat deletes all messages, votes and streams
    """

    __tablename__ = "chat"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    title = Column(Text, nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    visibility = Column(String(10), nullable=False, default="private")
    last_context = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)

    # Relationships
    user = relationship("User", back_populates="chats")
    messages = relationship(
        "Message",
        back_populates="chat",
        cascade="all, delete-orphan",
        order_by="Message.created_at"
    )
    votes = relationship("Vote", back_populates="chat", cascade="all, delete-orphan")
    streams = relationship("Stream", back_populates="chat", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Chat(id={self.id}, user_id={self.user_id}, title={self.title})>"
