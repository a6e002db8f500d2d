"""
Pydantic Schemas for authentication and sessions
"""

from pydantic import EmailStr, Field
from typing import Literal, Optional
from uuid import UUID

from chatapp.schemas.common import APIModel, UTCDateTime


class SessionUser(APIModel):
    """
    Identity resolved from the session token

    Fallback identities (ids that are not UUIDs) are transient: they are
    never written to the database and skip rate limiting.
    """
    id: str
    email: Optional[str] = None
    type: Literal["regular", "guest"]
    expires_at: Optional[UTCDateTime] = None

    @property
    def is_persisted(self) -> bool:
        try:
            UUID(self.id)
        except ValueError:
            return False
        return True

    @property
    def uuid(self) -> UUID:
        return UUID(self.id)


class CredentialsRequest(APIModel):
    """Email/password form used by login and register"""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")


class AuthResponse(APIModel):
    """Result of login/register"""
    status: Literal["success"] = "success"
    user_id: str
    email: str
    type: str
    message: Optional[str] = None


class SessionResponse(APIModel):
    """Body of GET /api/session"""
    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: str
    expires_at: Optional[UTCDateTime] = None
