"""
Pydantic Schemas for Request/Response Validation

All payloads use camelCase keys (see common.APIModel).

Modules:
    - auth: sessions, credentials
    - chat: chat request body, UI message stream parts, chat/message views
    - document: artifact documents, suggestions, votes
    - template: prompt templates
    - settings: user settings and stats
    - rag: RAG upload
    - admin: back-office users, settings, app-user directory, usage
"""

from chatapp.schemas.common import APIModel, UTCDateTime
from chatapp.schemas.auth import SessionUser
from chatapp.schemas.chat import PostRequestBody, StreamPart, AppUsage

__all__ = [
    "APIModel",
    "UTCDateTime",
    "SessionUser",
    "PostRequestBody",
    "StreamPart",
    "AppUsage",
]
