"""
Stream Model - Stream ids issued per chat for resumable responses
"""

from sqlalchemy import Column, ForeignKey, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid

from chatapp.database import Base
from chatapp.utils.datetime_utils import utcnow


class Stream(Base):
    """
    Stream id record

    The most recent stream of a chat is the one a reconnecting client
    resumes. The stream payload itself lives in Redis.

    Attributes:
        id: Stream UUID (Redis key suffix)
        chat_id: Chat the stream answers
        created_at: Creation timestamp
    """

    __tablename__ = "stream"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    chat_id = Column(UUID(as_uuid=True), ForeignKey("chat.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    chat = relationship("Chat", back_populates="streams")

    def __repr__(self):
        return f"<Stream(id={self.id}, chat_id={self.chat_id})>"
