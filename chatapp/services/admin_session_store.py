"""
Admin Session Store

Opaque back-office sessions kept in Redis. The browser only holds a random
session id; Redis maps sha256(session id) to the admin user id with a TTL.
"""

from typing import Optional
import logging

from chatapp.config import settings
from chatapp.core.security import generate_session_id, hash_session_id

logger = logging.getLogger(__name__)


class AdminSessionStore:
    """
    Redis-backed admin sessions

    Keys:
    - admin_session:{sha256(session_id)} -> admin user id (TTL = max age)
    """

    KEY_PREFIX = "admin_session:"

    def __init__(self, redis_client=None, max_age_seconds: Optional[int] = None):
        """
        Args:
            redis_client: Sync Redis client (created from REDIS_URL when omitted)
            max_age_seconds: Session lifetime (default: ADMIN_SESSION_MAX_AGE_DAYS)
        """
        if redis_client is None:
            import redis
            redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)

        self.redis = redis_client
        self.max_age_seconds = max_age_seconds or settings.ADMIN_SESSION_MAX_AGE_DAYS * 24 * 3600

    def create(self, admin_user_id: str) -> str:
        """
        Start a session for an admin user

        Args:
            admin_user_id: AdminUser id

        Returns:
            str: Session id to send as the admin cookie
        """
        session_id = generate_session_id()
        self.redis.setex(self._key(session_id), self.max_age_seconds, str(admin_user_id))
        logger.info(f"Admin session created for {admin_user_id}")
        return session_id

    def get(self, session_id: Optional[str]) -> Optional[str]:
        """
        Resolve a session id to the admin user id

        Returns:
            Admin user id, or None for unknown or expired sessions
        """
        if not session_id:
            return None

        value = self.redis.get(self._key(session_id))
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def destroy(self, session_id: Optional[str]) -> bool:
        """
        End a session

        Returns:
            True if a session was deleted
        """
        if not session_id:
            return False
        return bool(self.redis.delete(self._key(session_id)))

    def _key(self, session_id: str) -> str:
        return f"{self.KEY_PREFIX}{hash_session_id(session_id)}"
