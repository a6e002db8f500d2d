"""
Session API endpoint
Current chat app identity
"""

from fastapi import APIRouter, Depends

from chatapp.api.deps import get_session_user
from chatapp.schemas.auth import SessionResponse, SessionUser

router = APIRouter(prefix="/session", tags=["authentication"])


@router.get("", response_model=SessionResponse)
async def get_session(session_user: SessionUser = Depends(get_session_user)):
    """
    Get the current session

    Returns:
        {userId, email, name, role, expiresAt}; role is the user type

    Raises:
        HTTPException: 401 if there is no valid session
    """
    return SessionResponse(
        user_id=session_user.id,
        email=session_user.email,
        name=session_user.email,
        role=session_user.type,
        expires_at=session_user.expires_at,
    )
