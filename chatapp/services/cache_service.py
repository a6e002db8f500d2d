"""
Redis Caching Service

Caches chunk embeddings so that re-uploading the same text does not call
the embedding API again.
"""

from typing import List, Optional
import json
import hashlib
import logging
from chatapp.config import settings

logger = logging.getLogger(__name__)


class CacheService:
    """
    Redis caching for embeddings

    Cache Keys:
    - embedding:{model}:{hash} -> vector embedding (24h TTL)

    Degrades to a no-op when Redis is unreachable.
    """

    def __init__(self):
        """Initialize Redis connection"""
        self.redis = None
        self.enabled = settings.CACHE_ENABLED

        if self.enabled:
            try:
                import redis
                self.redis = redis.from_url(
                    settings.REDIS_URL,
                    decode_responses=False,  # Binary data for embeddings
                    socket_connect_timeout=5,
                    socket_timeout=5
                )
                # Test connection
                self.redis.ping()
                logger.info(f"Cache service connected to Redis")
            except Exception as e:
                logger.warning(f"Failed to connect to Redis: {e}. Caching disabled.")
                self.redis = None
                self.enabled = False

    def get_embedding(self, text: str) -> Optional[List[float]]:
        """
        Get cached embedding for text

        Args:
            text: Text to get embedding for

        Returns:
            Embedding vector or None if not cached
        """
        if not self.enabled or not self.redis:
            return None

        try:
            data = self.redis.get(self._make_embedding_key(text))

            if data:
                logger.debug(f"Embedding cache HIT for text hash: {self._hash(text)[:8]}")
                return json.loads(data.decode('utf-8'))

            return None

        except Exception as e:
            logger.error(f"Error getting embedding from cache: {e}")
            return None

    def set_embedding(
        self,
        text: str,
        embedding: List[float],
        ttl: Optional[int] = None
    ) -> bool:
        """
        Cache embedding for text

        Args:
            text: Text that was embedded
            embedding: Embedding vector
            ttl: Time to live in seconds (default: CACHE_EMBEDDING_TTL)

        Returns:
            True if cached successfully
        """
        if not self.enabled or not self.redis:
            return False

        try:
            ttl = ttl or settings.CACHE_EMBEDDING_TTL
            data = json.dumps(embedding).encode('utf-8')
            self.redis.setex(self._make_embedding_key(text), ttl, data)
            return True

        except Exception as e:
            logger.error(f"Error setting embedding in cache: {e}")
            return False

    def _make_embedding_key(self, text: str) -> str:
        """Generate cache key for embedding (model-scoped)"""
        return f"embedding:{settings.EMBEDDING_MODEL}:{self._hash(text)}"

    def _hash(self, text: str) -> str:
        """Full SHA-256 hex digest"""
        return hashlib.sha256(text.encode('utf-8')).hexdigest()
