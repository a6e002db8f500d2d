"""
User settings and stats API endpoints
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from chatapp.database import get_db
from chatapp.api.deps import get_current_user
from chatapp.models.user import User
from chatapp.models.user_settings import UserSettings
from chatapp.schemas.settings import StatsResponse, UserSettingsResponse, UserSettingsUpdate
from chatapp.services.stats_service import StatsService
from chatapp.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)
router = APIRouter(tags=["settings"])


@router.get("/settings", response_model=UserSettingsResponse)
async def get_settings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Get chat settings

    Returns defaults (nulls, useTemplatesAsSystem=true) when never saved.
    """
    row = db.query(UserSettings).filter(UserSettings.user_id == current_user.id).first()
    if row is None:
        return UserSettingsResponse()
    return row


@router.put("/settings", response_model=UserSettingsResponse)
async def update_settings(
    update: UserSettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Save chat settings (upsert)

    Raises:
        HTTPException: 400 if temperature is outside [0, 2] or maxTokens <= 0
    """
    row = db.query(UserSettings).filter(UserSettings.user_id == current_user.id).first()
    if row is None:
        row = UserSettings(user_id=current_user.id, created_at=utcnow())
        db.add(row)

    for field, value in update.model_dump(exclude_unset=True).items():
        if field == "use_templates_as_system" and value is None:
            continue
        setattr(row, field, value)
    row.updated_at = utcnow()

    db.commit()
    db.refresh(row)
    logger.info(f"Saved settings for user {current_user.id}")
    return row


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Usage statistics

    Returns:
        {totalSessions, totalMessages, last7Days, recentSessions}
    """
    return StatsService(db).get_user_stats(current_user.id)
