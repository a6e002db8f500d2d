"""
Admin Models - Back-office accounts and site-wide settings
"""

from sqlalchemy import Column, String, Boolean, Integer, DateTime, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
import uuid

from chatapp.database import Base
from chatapp.utils.datetime_utils import utcnow


ADMIN_ROLES = ("admin", "user")
ADMIN_STATUSES = ("active", "disabled")


class AdminUser(Base):
    """
    Back-office account

    Attributes:
        id: Admin user UUID
        email: Login email (unique)
        name: Display name
        role: "admin" or "user". Only admins may use the back-office API
        status: "active" or "disabled"
        password_hash: Optional bcrypt hash
        created_at: Creation timestamp
        updated_at: Last modification timestamp
    """

    __tablename__ = "admin_users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255))
    role = Column(String(20), nullable=False, default="user")
    status = Column(String(20), nullable=False, default="active")
    password_hash = Column(String(255))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<AdminUser(id={self.id}, email={self.email}, role={self.role})>"


class AdminSettings(Base):
    """
    Site-wide settings, a single row with id=1

    Attributes:
        site_name: Back-office title
        allow_signup: Whether new chat app accounts may register
        daily_token_limit: Token budget per user per day (>= 0)
        updated_at: Last modification timestamp
    """

    __tablename__ = "admin_settings"

    id = Column(Integer, primary_key=True, default=1)
    site_name = Column(String(255), nullable=False, default="Admin Panel")
    allow_signup = Column(Boolean, nullable=False, default=True)
    daily_token_limit = Column(Integer, nullable=False, default=20000)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("daily_token_limit >= 0", name="ck_admin_settings_daily_token_limit"),
    )

    def __repr__(self):
        return f"<AdminSettings(site_name={self.site_name}, allow_signup={self.allow_signup})>"
