"""
Resumable Stream Context

Server-sent event streams that a reconnecting client can re-attach to.

The first caller for a stream id becomes the producer: a background task
drains the source stream into a Redis stream (XADD), so generation keeps
going when the original client disconnects. Every reader, including the
original request, replays the Redis stream from the beginning and follows
it until the end-of-stream sentinel.

Keys:
- {prefix}:{stream_id}:state  -> "active" | "done"
- {prefix}:{stream_id}:chunks -> Redis stream of {"data": <sse chunk>} entries,
  terminated by a {"done": "1"} entry
"""

import asyncio
import logging
from functools import lru_cache
from typing import AsyncIterator, Callable, Optional, Set

from chatapp.config import settings

logger = logging.getLogger(__name__)

STATE_ACTIVE = "active"
STATE_DONE = "done"


class ResumableStreamContext:
    """
    Redis-backed resumable streams

    Args:
        redis: redis.asyncio client created with decode_responses=True
        key_prefix: Namespace for all keys
        ttl_seconds: Expiry of state and chunk keys
        poll_interval: Seconds between reads while waiting for new chunks
    """

    def __init__(
        self,
        redis,
        key_prefix: str = "resumable-stream",
        ttl_seconds: Optional[int] = None,
        poll_interval: Optional[float] = None,
    ):
        self.redis = redis
        self.key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds or settings.STREAM_TTL_SECONDS
        self.poll_interval = poll_interval if poll_interval is not None else settings.STREAM_POLL_INTERVAL
        self._producers: Set[asyncio.Task] = set()

    async def resumable_stream(
        self,
        stream_id: str,
        make_stream: Callable[[], AsyncIterator[str]],
    ) -> Optional[AsyncIterator[str]]:
        """
        Get a readable stream for stream_id, starting production if needed

        Args:
            stream_id: Stream identifier
            make_stream: Factory for the source stream (called at most once)

        Returns:
            Async iterator of SSE chunks, or None if the stream already finished
        """
        created = await self.redis.set(
            self._state_key(stream_id), STATE_ACTIVE, nx=True, ex=self.ttl_seconds
        )

        if created:
            task = asyncio.create_task(self._produce(stream_id, make_stream))
            self._producers.add(task)
            task.add_done_callback(self._producers.discard)
            logger.debug(f"Started producer for stream {stream_id}")
            return self._consume(stream_id)

        state = await self.redis.get(self._state_key(stream_id))
        if state == STATE_DONE:
            return None
        return self._consume(stream_id)

    async def resume_existing_stream(self, stream_id: str) -> Optional[AsyncIterator[str]]:
        """
        Re-attach to a stream that is still being produced

        Returns:
            Async iterator replaying the stream from the start, or None when
            the stream is unknown (expired) or has already finished
        """
        state = await self.redis.get(self._state_key(stream_id))
        if state != STATE_ACTIVE:
            return None

        logger.info(f"Resuming stream {stream_id}")
        return self._consume(stream_id)

    async def _produce(self, stream_id: str, make_stream: Callable[[], AsyncIterator[str]]) -> None:
        chunks_key = self._chunks_key(stream_id)
        try:
            async for chunk in make_stream():
                await self.redis.xadd(chunks_key, {"data": chunk})
        except Exception as e:
            logger.error(f"Producer for stream {stream_id} failed: {e}")
        finally:
            await self.redis.xadd(chunks_key, {"done": "1"})
            await self.redis.expire(chunks_key, self.ttl_seconds)
            await self.redis.set(self._state_key(stream_id), STATE_DONE, ex=self.ttl_seconds)
            logger.debug(f"Producer for stream {stream_id} finished")

    async def _consume(self, stream_id: str) -> AsyncIterator[str]:
        chunks_key = self._chunks_key(stream_id)
        last_id = "0-0"

        while True:
            response = await self.redis.xread({chunks_key: last_id}, count=100)
            entries = _entries_for(response, chunks_key)

            if not entries:
                if await self.redis.get(self._state_key(stream_id)) is None:
                    # Expired without a sentinel
                    return
                await asyncio.sleep(self.poll_interval)
                continue

            for entry_id, fields in entries:
                last_id = entry_id
                if "done" in fields:
                    return
                yield fields["data"]

    def _state_key(self, stream_id: str) -> str:
        return f"{self.key_prefix}:{stream_id}:state"

    def _chunks_key(self, stream_id: str) -> str:
        return f"{self.key_prefix}:{stream_id}:chunks"


def _entries_for(response, key: str):
    """Extract [(id, fields)] for key from an XREAD reply (RESP2 list or RESP3 dict)"""
    if not response:
        return []
    if isinstance(response, dict):
        value = response.get(key) or []
        # RESP3 replies nest the entries one level deeper
        if value and isinstance(value[0], list) and value[0] and isinstance(value[0][0], (list, tuple)):
            return value[0]
        return value
    for stream_name, entries in response:
        if stream_name == key:
            return entries
    return []


@lru_cache(maxsize=1)
def get_stream_context() -> Optional[ResumableStreamContext]:
    """
    Get the singleton stream context

    Returns:
        ResumableStreamContext, or None when resumable streams are disabled
    """
    if not settings.RESUMABLE_STREAMS_ENABLED or not settings.REDIS_URL:
        logger.info("Resumable streams are disabled due to missing REDIS_URL")
        return None

    import redis.asyncio as redis

    client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    return ResumableStreamContext(client)
