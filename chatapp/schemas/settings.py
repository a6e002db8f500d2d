"""
Pydantic Schemas for user settings and usage stats
"""

from pydantic import Field, StrictBool
from typing import List, Optional
from uuid import UUID

from chatapp.schemas.common import APIModel, UTCDateTime


class UserSettingsResponse(APIModel):
    """Chat settings of the current user (defaults when never saved)"""
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    use_templates_as_system: bool = True


class UserSettingsUpdate(APIModel):
    """Schema for saving settings (omitted fields keep their value)"""
    model: Optional[str] = None
    temperature: Optional[float] = Field(None, ge=0, le=2)
    max_tokens: Optional[int] = Field(None, gt=0)
    use_templates_as_system: Optional[StrictBool] = None


class DailyCount(APIModel):
    """Messages sent on one day"""
    date: str = Field(..., description="YYYY-MM-DD (UTC)")
    messages_count: int


class RecentSession(APIModel):
    """Recently created chat"""
    id: UUID
    title: str
    created_at: UTCDateTime


class StatsResponse(APIModel):
    """Body of GET /api/stats"""
    total_sessions: int
    total_messages: int
    last_7_days: List[DailyCount] = Field(..., alias="last7Days")
    recent_sessions: List[RecentSession]
