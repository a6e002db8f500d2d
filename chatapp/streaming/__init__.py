"""
Streaming primitives

- ui_stream: model deltas -> UI message stream parts (SSE)
- resumable: Redis-backed resumable SSE streams
"""

from chatapp.streaming.ui_stream import (
    SSE_DONE,
    SSE_HEADERS,
    SSE_MEDIA_TYPE,
    ThinkTagSplitter,
    UIMessageStreamBuilder,
)
from chatapp.streaming.resumable import ResumableStreamContext, get_stream_context

__all__ = [
    "SSE_DONE",
    "SSE_HEADERS",
    "SSE_MEDIA_TYPE",
    "ThinkTagSplitter",
    "UIMessageStreamBuilder",
    "ResumableStreamContext",
    "get_stream_context",
]
