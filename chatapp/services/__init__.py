"""
Business Logic Services

Includes:
- ChatService: Streaming chat with persistence and entitlements
- RagService: Text/markdown upload, chunking and embedding
- StatsService: Per-user dashboard statistics
- AdminService: Back-office queries
- AdminSessionStore: Redis-backed admin sessions
- CacheService: Redis caching for embeddings
"""

# Lazy imports to avoid circular dependencies
# Import services directly from their modules instead

__all__ = [
    "ChatService",
    "RagService",
    "StatsService",
    "AdminService",
    "AdminSessionStore",
    "CacheService",
]
