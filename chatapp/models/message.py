"""
Message Model - Individual chat messages stored as UI parts
"""

from sqlalchemy import Column, String, ForeignKey, JSON, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid

from chatapp.database import Base
from chatapp.utils.datetime_utils import utcnow


class Message(Base):
    """
    Message model - one user or assistant turn

    Attributes:
        id: Message UUID (client-generated for user messages)
        chat_id: Parent chat
        role: user, assistant or system
        parts: Ordered list of UI parts ({"type": "text", "text": ...},
            {"type": "reasoning", "text": ...}, {"type": "file", ...})
        attachments: Legacy attachment list (kept empty for new messages)
        created_at: Message timestamp

    Relationships:
        chat: Parent chat (many-to-one)
    """

    __tablename__ = "message"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    chat_id = Column(UUID(as_uuid=True), ForeignKey("chat.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False)
    parts = Column(JSON, nullable=False, default=list)
    attachments = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    # Relationships
    chat = relationship("Chat", back_populates="messages")

    def text_content(self) -> str:
        """Concatenated text of all text parts"""
        return "".join(
            part.get("text", "")
            for part in (self.parts or [])
            if isinstance(part, dict) and part.get("type") == "text"
        )

    def __repr__(self):
        return f"<Message(id={self.id}, chat_id={self.chat_id}, role={self.role})>"
