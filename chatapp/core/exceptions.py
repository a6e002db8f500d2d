"""
Custom exceptions for the chat platform API

ChatError carries a "<type>:<surface>" code (e.g. "forbidden:chat") that
maps to an HTTP status and a user-facing message. CRUD routes use the
plain HTTPException helpers at the bottom of this module.
"""

import logging
from typing import Optional

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


ERROR_STATUS = {
    "bad_request": status.HTTP_400_BAD_REQUEST,
    "unauthorized": status.HTTP_401_UNAUTHORIZED,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "rate_limit": status.HTTP_429_TOO_MANY_REQUESTS,
    "bad_gateway": status.HTTP_502_BAD_GATEWAY,
    "offline": status.HTTP_503_SERVICE_UNAVAILABLE,
}

SURFACES = {
    "api", "auth", "chat", "stream", "database", "history",
    "vote", "document", "suggestions", "rag",
}

# Surfaces whose details are logged but never shown to the client
LOG_ONLY_SURFACES = {"database"}

GENERIC_MESSAGE = "Something went wrong. Please try again later."

ERROR_MESSAGES = {
    "bad_request:api": "The request couldn't be processed. Please check your input and try again.",
    "unauthorized:auth": "You need to sign in before continuing.",
    "forbidden:auth": "Your account does not have access to this feature.",
    "rate_limit:chat": "You have exceeded your maximum number of messages for the day. Please try again later.",
    "not_found:chat": "The requested chat was not found. Please check the chat ID and try again.",
    "forbidden:chat": "This chat belongs to another user. Please check the chat ID and try again.",
    "unauthorized:chat": "You need to sign in to view this chat. Please sign in and try again.",
    "offline:chat": "We're having trouble sending your message. Please check your internet connection and try again.",
    "bad_gateway:chat": "The language model provider failed to respond. Please try again later.",
    "not_found:stream": "No stream was found for this chat.",
    "not_found:document": "The requested document was not found. Please check the document ID and try again.",
    "forbidden:document": "This document belongs to another user. Please check the document ID and try again.",
    "unauthorized:document": "You need to sign in to view this document. Please sign in and try again.",
    "bad_request:document": "The request to create or update the document was invalid. Please check your input and try again.",
    "unauthorized:vote": "You need to sign in to vote. Please sign in and try again.",
    "forbidden:vote": "You can only vote on messages in your own chats.",
    "unauthorized:suggestions": "You need to sign in to view suggestions. Please sign in and try again.",
    "forbidden:suggestions": "These suggestions belong to another user.",
    "not_found:database": "The requested record was not found.",
    "bad_gateway:rag": "The embedding provider returned an unexpected response.",
}

SURFACE_MESSAGES = {
    "database": "An error occurred while executing a database query.",
}


class ChatError(Exception):
    """
    Application error identified by a "<type>:<surface>" code

    Args:
        code: Error code, e.g. "not_found:chat"
        cause: Optional detail shown to the client (or logged for database errors)

    Raises:
        ValueError: If the type or surface is unknown
    """

    def __init__(self, code: str, cause: Optional[str] = None):
        error_type, _, surface = code.partition(":")
        if error_type not in ERROR_STATUS or surface not in SURFACES:
            raise ValueError(f"Unknown error code: {code}")

        self.code = code
        self.type = error_type
        self.surface = surface
        self.cause = cause
        self.message = get_message_by_code(code)
        self.status_code = ERROR_STATUS[error_type]
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Response body for this error"""
        if self.surface in LOG_ONLY_SURFACES:
            return {"code": "", "message": GENERIC_MESSAGE}
        return {"code": self.code, "message": self.message, "cause": self.cause}

    def to_response(self) -> JSONResponse:
        """Build the JSON response, logging log-only errors"""
        if self.surface in LOG_ONLY_SURFACES:
            logger.error(f"{self.code}: {self.message} (cause: {self.cause})")
        return JSONResponse(status_code=self.status_code, content=self.to_dict())


def get_message_by_code(code: str) -> str:
    """Resolve the user-facing message for an error code"""
    if code in ERROR_MESSAGES:
        return ERROR_MESSAGES[code]
    surface = code.partition(":")[2]
    return SURFACE_MESSAGES.get(surface, GENERIC_MESSAGE)


# HTTP exception helpers
def http_401_unauthorized(detail: str = "Invalid authentication credentials"):
    """Raise 401 Unauthorized"""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def http_403_forbidden(detail: str = "Not enough permissions"):
    """Raise 403 Forbidden"""
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail,
    )


def http_404_not_found(detail: str = "Resource not found"):
    """Raise 404 Not Found"""
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )


def http_400_bad_request(detail: str = "Bad request"):
    """Raise 400 Bad Request"""
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail,
    )


def http_409_conflict(detail: str = "Resource conflict"):
    """Raise 409 Conflict"""
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=detail,
    )
