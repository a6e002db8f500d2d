"""
PromptTemplate Model - Reusable prompts saved by users
"""

from sqlalchemy import Column, Text, Boolean, ForeignKey, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid

from chatapp.database import Base
from chatapp.utils.datetime_utils import utcnow


class PromptTemplate(Base):
    """
    Prompt template

    Attributes:
        id: Template UUID
        user_id: Owner
        name: Display name
        description: Optional description
        content: Prompt text
        is_favorite: Favourite templates can be used as the system prompt
        created_at: Creation timestamp
        updated_at: Last modification timestamp
    """

    __tablename__ = "prompt_templates"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    description = Column(Text)
    content = Column(Text, nullable=False)
    is_favorite = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="templates")

    def __repr__(self):
        return f"<PromptTemplate(id={self.id}, name={self.name})>"
