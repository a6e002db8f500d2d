"""
Vote Model - Thumbs up/down on assistant messages
"""

from sqlalchemy import Column, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from chatapp.database import Base


class Vote(Base):
    """
    Vote model, one row per (chat, message)

    Attributes:
        chat_id: Chat the message belongs to
        message_id: Voted message
        is_upvoted: True for up, False for down
    """

    __tablename__ = "vote"

    chat_id = Column(UUID(as_uuid=True), ForeignKey("chat.id", ondelete="CASCADE"), primary_key=True)
    message_id = Column(UUID(as_uuid=True), ForeignKey("message.id", ondelete="CASCADE"), primary_key=True)
    is_upvoted = Column(Boolean, nullable=False)

    chat = relationship("Chat", back_populates="votes")

    def __repr__(self):
        return f"<Vote(chat_id={self.chat_id}, message_id={self.message_id}, is_upvoted={self.is_upvoted})>"
