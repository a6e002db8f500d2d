"""
Security utilities for authentication
Password hashing, session JWTs for the chat app, opaque admin session ids
"""

import secrets
import hashlib
from datetime import timedelta
from typing import Optional, Dict, Any

from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext

from chatapp.config import settings
from chatapp.utils.datetime_utils import utcnow

# Password hashing context (bcrypt)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class InvalidTokenError(Exception):
    """Session token is malformed, tampered with or expired"""
    pass


def create_session_token(user_id: str, user_type: str, expires_days: Optional[int] = None) -> str:
    """
    Create a signed session token for a chat app user

    Args:
        user_id: User id (UUID string, or a "fallback-..." id)
        user_type: "regular" or "guest"
        expires_days: Lifetime in days (default: settings.SESSION_MAX_AGE_DAYS)

    Returns:
        str: Encoded JWT
    """
    now = utcnow()
    lifetime = timedelta(days=expires_days or settings.SESSION_MAX_AGE_DAYS)
    payload = {
        "sub": str(user_id),
        "type": user_type,
        "iat": int(now.timestamp()),
        "exp": int((now + lifetime).timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_session_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify a session token

    Args:
        token: Encoded JWT

    Returns:
        dict: Token claims (sub, type, iat, exp)

    Raises:
        InvalidTokenError: If the token cannot be verified or has expired
    """
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        raise InvalidTokenError("Session token expired") from e
    except JWTError as e:
        raise InvalidTokenError("Invalid session token") from e

    if not claims.get("sub") or claims.get("type") not in ("regular", "guest"):
        raise InvalidTokenError("Session token is missing required claims")

    return claims


def generate_session_id() -> str:
    """
    Generate an opaque admin session id

    Returns:
        str: URL-safe random token (sent to the browser as a cookie)
    """
    return secrets.token_urlsafe(32)


def hash_session_id(session_id: str) -> str:
    """
    Hash a session id using SHA-256

    Only the hash is used as the storage key.

    Args:
        session_id: The session id to hash

    Returns:
        str: SHA-256 hash of the session id
    """
    return hashlib.sha256(session_id.encode()).hexdigest()


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt

    Args:
        password: Plain text password

    Returns:
        str: Bcrypt hashed password
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a password against its hash

    Args:
        plain_password: Plain text password
        hashed_password: Stored bcrypt hash (None for guest accounts)

    Returns:
        bool: True if password matches hash
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)
