"""
Authentication API endpoints
Guest sessions, registration, login and logout for the chat app
"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatapp.config import settings
from chatapp.database import get_db
from chatapp.models.user import User
from chatapp.core.security import create_session_token, hash_password, verify_password
from chatapp.core.exceptions import (
    http_400_bad_request,
    http_401_unauthorized,
    http_403_forbidden,
    http_409_conflict,
)
from chatapp.api.deps import get_optional_session_user
from chatapp.middleware.rate_limiter import auth_rate_limit
from chatapp.schemas.auth import AuthResponse, CredentialsRequest, SessionUser

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["authentication"])


def set_session_cookie(response: Response, token: str) -> None:
    """Attach the session token cookie to a response"""
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_MAX_AGE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        path="/",
    )


def _safe_redirect_target(redirect_url: Optional[str]) -> str:
    """Only same-site relative paths are accepted as redirect targets"""
    if redirect_url and redirect_url.startswith("/") and not redirect_url.startswith("//"):
        return redirect_url
    return "/"


async def _parse_credentials(request: Request) -> CredentialsRequest:
    try:
        return CredentialsRequest.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        logger.info(f"Rejected credentials payload: {e.__class__.__name__}")
        raise http_400_bad_request("A valid email and a password of at least 6 characters are required")


@router.get("/guest", status_code=status.HTTP_307_TEMPORARY_REDIRECT)
@auth_rate_limit()
async def guest(
    request: Request,
    redirectUrl: Optional[str] = "/",
    db: Session = Depends(get_db),
    session_user: Optional[SessionUser] = Depends(get_optional_session_user)
):
    """
    Start a guest session and redirect

    If a valid session already exists the request only redirects. When the
    guest row cannot be created, a transient fallback identity is issued
    instead; it can chat but nothing it does is persisted.
    """
    target = _safe_redirect_target(redirectUrl)
    response = RedirectResponse(url=target, status_code=status.HTTP_307_TEMPORARY_REDIRECT)

    if session_user is not None:
        return response

    timestamp = int(time.time() * 1000)
    try:
        user = User(email=f"guest-{timestamp}", password=None, type="guest")
        db.add(user)
        db.commit()
        db.refresh(user)
        token = create_session_token(str(user.id), "guest")
        logger.info(f"Created guest user {user.id}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create guest user, issuing fallback session: {e}")
        token = create_session_token(f"fallback-{timestamp}", "guest")

    set_session_cookie(response, token)
    return response


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@auth_rate_limit()
async def register(
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Register a regular user and start a session

    Request Format:
        ```json
        {"email": "user@example.com", "password": "secret1"}
        ```

    Raises:
        HTTPException: 400 on invalid input, 409 if the email is taken
    """
    credentials = await _parse_credentials(request)

    existing_user = db.query(User).filter(User.email == credentials.email).first()
    if existing_user:
        raise http_409_conflict("An account with this email already exists")

    user = User(
        email=credentials.email,
        password=hash_password(credentials.password),
        type="regular",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id}")

    body = AuthResponse(user_id=str(user.id), email=user.email, type=user.type, message="Account created")
    response = JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=body.model_dump(by_alias=True, exclude_none=True)
    )
    set_session_cookie(response, create_session_token(str(user.id), "regular"))
    return response


@router.post("/login", response_model=AuthResponse)
@auth_rate_limit()
async def login(
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Log in with email and password

    Raises:
        HTTPException: 401 on invalid credentials, 403 for banned users
    """
    credentials = await _parse_credentials(request)

    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not verify_password(credentials.password, user.password):
        raise http_401_unauthorized("Invalid email or password")

    if user.status == "banned":
        raise http_403_forbidden("This account has been disabled")

    body = AuthResponse(user_id=str(user.id), email=user.email, type=user.type)
    response = JSONResponse(content=body.model_dump(by_alias=True, exclude_none=True))
    set_session_cookie(response, create_session_token(str(user.id), user.type))
    logger.info(f"User {user.id} logged in")
    return response


@router.post("/logout")
async def logout():
    """Clear the session cookie"""
    response = JSONResponse(content={"status": "success"})
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/")
    return response
