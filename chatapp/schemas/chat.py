"""
Pydantic Schemas for Chat endpoints
Request body of the chat route, UI message stream parts, and chat/message views
"""

from pydantic import Field, field_validator
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from urllib.parse import urlparse
from uuid import UUID
from enum import Enum

from chatapp.schemas.common import APIModel, UTCDateTime


class ChatModelId(str, Enum):
    """Selectable chat models"""
    CHAT = "chat-model"
    REASONING = "chat-model-reasoning"


class Visibility(str, Enum):
    """Chat visibility"""
    PUBLIC = "public"
    PRIVATE = "private"


class TextPart(APIModel):
    """Plain text part of a user message"""
    type: Literal["text"]
    text: str = Field(..., min_length=1, max_length=2000)


class FilePart(APIModel):
    """Image attachment part of a user message"""
    type: Literal["file"]
    media_type: Literal["image/jpeg", "image/png"]
    name: str = Field(..., min_length=1, max_length=100)
    url: str

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("url must be an absolute http(s) URL")
        return value


MessagePart = Annotated[Union[TextPart, FilePart], Field(discriminator="type")]


class UserMessage(APIModel):
    """New user message sent to the chat route"""
    id: UUID
    role: Literal["user"]
    parts: List[MessagePart] = Field(..., min_length=1)


class PostRequestBody(APIModel):
    """
    Body of POST /api/chat

    Example:
        ```json
        {
          "id": "6f1c...",
          "message": {"id": "a1b2...", "role": "user",
                      "parts": [{"type": "text", "text": "Hello"}]},
          "selectedChatModel": "chat-model",
          "selectedVisibilityType": "private"
        }
        ```
    """
    id: UUID = Field(..., description="Chat id (new chats are created on first message)")
    message: UserMessage
    selected_chat_model: ChatModelId
    selected_visibility_type: Visibility


StreamPartType = Literal[
    "start",
    "start-step",
    "reasoning-start",
    "reasoning-delta",
    "reasoning-end",
    "text-start",
    "text-delta",
    "text-end",
    "finish-step",
    "data-usage",
    "data-appendMessage",
    "error",
    "finish",
]


class StreamPart(APIModel):
    """One event of the UI message stream, sent as an SSE `data:` line"""
    type: StreamPartType
    id: Optional[str] = None
    delta: Optional[str] = None
    message_id: Optional[str] = None
    error_text: Optional[str] = None
    data: Optional[Any] = None
    transient: Optional[bool] = None

    def to_sse(self) -> str:
        """Serialize as a server-sent event"""
        return f"data: {self.model_dump_json(by_alias=True, exclude_none=True)}\n\n"


class AppUsage(APIModel):
    """Token usage of one model call, stored as chat.last_context"""
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    model_id: Optional[str] = None
    input_cost: Optional[float] = None
    output_cost: Optional[float] = None
    total_cost: Optional[float] = None


class ChatResponse(APIModel):
    """Chat row"""
    id: UUID
    created_at: UTCDateTime
    title: str
    user_id: UUID
    visibility: Visibility
    last_context: Optional[Dict[str, Any]] = None


class MessageResponse(APIModel):
    """Stored message"""
    id: UUID
    chat_id: UUID
    role: str
    parts: List[Dict[str, Any]]
    attachments: List[Any] = []
    created_at: UTCDateTime


class ChatWithMessagesResponse(ChatResponse):
    """Chat together with its messages in chronological order"""
    messages: List[MessageResponse] = []


class HistoryResponse(APIModel):
    """Page of the user's chat history (newest first)"""
    chats: List[ChatResponse]
    has_more: bool


class VisibilityUpdate(APIModel):
    """Body of PATCH /api/chat/{id}/visibility"""
    visibility: Visibility
