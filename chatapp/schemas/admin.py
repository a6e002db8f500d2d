"""
Pydantic Schemas for the admin back-office
"""

import re
from pydantic import Field, StrictBool, StrictInt, field_validator, model_validator
from typing import List, Literal, Optional
from uuid import UUID

from chatapp.schemas.common import APIModel, UTCDateTime

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

AdminRole = Literal["admin", "user"]
AdminStatus = Literal["active", "disabled"]


def _validate_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email address")
    return value


class AdminLoginRequest(APIModel):
    """Body of POST /api/admin/login"""
    email: str
    password: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, value):
        return _validate_email(value)


class AdminUserCreate(APIModel):
    """Schema for creating an admin user"""
    email: str
    name: Optional[str] = None
    role: AdminRole = "user"
    status: AdminStatus = "active"
    password: Optional[str] = Field(None, min_length=6)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value):
        return _validate_email(value)


class AdminUserUpdate(APIModel):
    """Schema for updating an admin user (at least one field)"""
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[AdminRole] = None
    status: Optional[AdminStatus] = None
    password: Optional[str] = Field(None, min_length=6)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value):
        return _validate_email(value)

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class AdminUserResponse(APIModel):
    """Admin user (never includes the password hash)"""
    id: UUID
    email: str
    name: Optional[str] = None
    role: str
    status: str
    created_at: UTCDateTime
    updated_at: UTCDateTime


class AdminUserListResponse(APIModel):
    """Page of admin users"""
    users: List[AdminUserResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class AdminSettingsData(APIModel):
    """Site settings"""
    site_name: str
    allow_signup: bool
    daily_token_limit: int
    updated_at: UTCDateTime


class AdminSettingsUpdate(APIModel):
    """Partial site settings update"""
    site_name: Optional[str] = None
    allow_signup: Optional[StrictBool] = None
    daily_token_limit: Optional[StrictInt] = Field(None, ge=0)

    @field_validator("site_name")
    @classmethod
    def validate_site_name(cls, value):
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("siteName must be a non-empty string")
        return value


class ProfileUpdate(APIModel):
    """Body of PATCH /api/admin/profile"""
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value):
        value = value.strip()
        if not value:
            raise ValueError("name must be a non-empty string")
        return value


class AppUserResponse(APIModel):
    """Chat app user as seen from the back-office"""
    id: UUID
    email: str
    type: str
    status: str
    created_at: UTCDateTime
    updated_at: UTCDateTime


class AppUserListResponse(APIModel):
    """Page of chat app users"""
    users: List[AppUserResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class UsageSummary(APIModel):
    """Activity totals of one chat app user"""
    total_chats: int
    total_messages: int
    last_activity: Optional[UTCDateTime] = None


class RecentChat(APIModel):
    """Chat with its message count"""
    id: UUID
    title: str
    visibility: str
    created_at: UTCDateTime
    message_count: int


class AppUserDetailResponse(APIModel):
    """Chat app user with usage and recent chats"""
    user: AppUserResponse
    usage: UsageSummary
    recent_chats: List[RecentChat]


class UserUsage(APIModel):
    """Row of GET /api/admin/usage"""
    user_id: UUID
    email: str
    total_chats: int
    total_messages: int
    last_activity: Optional[UTCDateTime] = None


class DashboardMetrics(APIModel):
    """Body of GET /api/admin/metrics"""
    total_users: int
    active_users_last_7_days: int = Field(..., alias="activeUsersLast7Days")
    total_chats: int
    total_messages: int


class TrendPoint(APIModel):
    """Messages on one day"""
    date: str
    count: int
