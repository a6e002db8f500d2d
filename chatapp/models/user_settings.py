"""
UserSettings Model - Per-user chat preferences
"""

from sqlalchemy import Column, Text, Float, Integer, Boolean, ForeignKey, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from chatapp.database import Base
from chatapp.utils.datetime_utils import utcnow


class UserSettings(Base):
    """
    Chat preferences, at most one row per user

    Attributes:
        user_id: Owner (primary key)
        model: Preferred chat model id
        temperature: Sampling temperature override
        max_tokens: Completion length override
        use_templates_as_system: Append the favourite template to the system prompt
    """

    __tablename__ = "user_settings"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    model = Column(Text)
    temperature = Column(Float)
    max_tokens = Column(Integer)
    use_templates_as_system = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="settings")

    def __repr__(self):
        return f"<UserSettings(user_id={self.user_id}, model={self.model})>"
