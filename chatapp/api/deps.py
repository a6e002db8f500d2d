"""
FastAPI dependencies
Session resolution for the chat app and the admin back-office, service singletons
"""

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from chatapp.config import settings
from chatapp.database import get_db
from chatapp.models.user import User
from chatapp.models.admin import AdminUser
from chatapp.core.security import decode_session_token, InvalidTokenError
from chatapp.core.exceptions import http_401_unauthorized
from chatapp.schemas.auth import SessionUser

logger = logging.getLogger(__name__)


def get_session_token(request: Request) -> Optional[str]:
    """
    Extract the session token from the cookie or the Authorization header

    Args:
        request: Incoming request

    Returns:
        Token string or None
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        return authorization[7:] or None

    return None


async def get_optional_session_user(
    request: Request,
    db: Session = Depends(get_db)
) -> Optional[SessionUser]:
    """
    Resolve the current chat app identity, if any

    Invalid or expired tokens, deleted users and banned users resolve to None.

    Returns:
        SessionUser or None
    """
    token = get_session_token(request)
    if not token:
        return None

    try:
        claims = decode_session_token(token)
    except InvalidTokenError as e:
        logger.debug(f"Rejected session token: {e}")
        return None

    expires_at = datetime.fromtimestamp(claims["exp"], tz=timezone.utc) if claims.get("exp") else None
    session_user = SessionUser(id=claims["sub"], type=claims["type"], expires_at=expires_at)

    if not session_user.is_persisted:
        # Transient fallback identity
        return session_user

    user = db.query(User).filter(User.id == session_user.uuid).first()
    if not user or user.status == "banned":
        return None

    session_user.email = user.email
    session_user.type = user.type
    return session_user


async def get_session_user(
    session_user: Optional[SessionUser] = Depends(get_optional_session_user)
) -> SessionUser:
    """
    Require a chat app identity

    Raises:
        HTTPException: 401 if there is no valid session
    """
    if session_user is None:
        raise http_401_unauthorized("Unauthorized")
    return session_user


async def get_current_user(
    session_user: SessionUser = Depends(get_session_user),
    db: Session = Depends(get_db)
) -> User:
    """
    Require a persisted chat app user (guest or regular)

    Returns:
        User: Authenticated user row

    Raises:
        HTTPException: 401 for missing sessions and transient identities
    """
    if not session_user.is_persisted:
        raise http_401_unauthorized("Unauthorized")

    user = db.query(User).filter(User.id == session_user.uuid).first()
    if not user:
        raise http_401_unauthorized("User not found")

    return user


# ==============================================================================
# Admin back-office
# ==============================================================================


@lru_cache(maxsize=1)
def get_admin_session_store():
    """
    Get singleton AdminSessionStore instance

    Returns:
        AdminSessionStore: Redis-backed session store
    """
    from chatapp.services.admin_session_store import AdminSessionStore
    return AdminSessionStore()


async def get_current_admin(
    request: Request,
    db: Session = Depends(get_db),
    store=Depends(get_admin_session_store)
) -> AdminUser:
    """
    Require an active back-office admin

    Raises:
        HTTPException: 401 if the admin session is missing, expired,
            or does not belong to an active admin
    """
    session_id = request.cookies.get(settings.ADMIN_SESSION_COOKIE_NAME)
    admin_id = store.get(session_id)

    if not admin_id:
        raise http_401_unauthorized("Unauthorized")

    try:
        admin_uuid = UUID(admin_id)
    except ValueError:
        raise http_401_unauthorized("Unauthorized")

    admin = db.query(AdminUser).filter(AdminUser.id == admin_uuid).first()
    if not admin or admin.role != "admin" or admin.status != "active":
        raise http_401_unauthorized("Unauthorized")

    return admin


# ==============================================================================
# Service Singletons
# ==============================================================================


def get_stream_context_dependency():
    """
    Resumable stream context, or None when Redis streaming is disabled
    """
    from chatapp.streaming.resumable import get_stream_context
    return get_stream_context()
