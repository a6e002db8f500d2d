"""
Pydantic Schemas for prompt templates
"""

from pydantic import Field, StrictBool, field_validator
from typing import Optional
from uuid import UUID

from chatapp.schemas.common import APIModel, UTCDateTime


def _require_text(value: Optional[str], field: str) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError(f"{field} must not be empty")
    return value


class TemplateCreate(APIModel):
    """Schema for creating a template"""
    name: str = Field(..., description="Template name")
    description: Optional[str] = None
    content: str = Field(..., description="Prompt text")
    is_favorite: StrictBool = False

    @field_validator("name", "content")
    @classmethod
    def not_blank(cls, value, info):
        return _require_text(value, info.field_name)

    @field_validator("description")
    @classmethod
    def strip_description(cls, value):
        if value is None:
            return None
        return value.strip() or None


class TemplateUpdate(APIModel):
    """Schema for updating a template (all fields optional)"""
    name: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    is_favorite: Optional[StrictBool] = None

    @field_validator("name", "content")
    @classmethod
    def not_blank(cls, value, info):
        return _require_text(value, info.field_name)

    @field_validator("description")
    @classmethod
    def strip_description(cls, value):
        if value is None:
            return None
        return value.strip() or None


class TemplateResponse(APIModel):
    """Schema for template responses"""
    id: UUID
    user_id: UUID
    name: str
    description: Optional[str] = None
    content: str
    is_favorite: bool
    created_at: UTCDateTime
    updated_at: UTCDateTime
