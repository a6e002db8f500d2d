"""
Centralized Error Handling

Provides consistent error handling and logging across the application.
Includes handlers for ChatError codes, provider errors, database errors
and anything unexpected.
"""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from openai import APIError, RateLimitError, APITimeoutError
from sqlalchemy.exc import IntegrityError, OperationalError, DBAPIError
from typing import Dict, Any
import logging
import traceback

from chatapp.core.exceptions import ChatError
from chatapp.utils.sanitize import sanitize_string

logger = logging.getLogger(__name__)


class ErrorHandler:
    """Centralized error handling"""

    @staticmethod
    def handle_openai_error(error: Exception) -> Dict[str, Any]:
        """
        Handle OpenAI API errors (embeddings)

        Args:
            error: OpenAI exception

        Returns:
            Error dictionary with message and details
        """
        if isinstance(error, RateLimitError):
            logger.warning(f"OpenAI rate limit exceeded: {sanitize_string(str(error))}")
            return {
                "error": "rate_limit",
                "message": "OpenAI rate limit exceeded. Please try again in a moment.",
                "retry_after": 60,
                "provider": "openai"
            }

        elif isinstance(error, APITimeoutError):
            logger.warning(f"OpenAI API timeout: {error}")
            return {
                "error": "timeout",
                "message": "OpenAI API request timed out. Please try again.",
                "provider": "openai"
            }

        else:
            logger.error(f"OpenAI API error: {sanitize_string(str(error))}")
            return {
                "error": "api_error",
                "message": "OpenAI API error occurred. Please try again.",
                "provider": "openai"
            }

    @staticmethod
    def handle_database_error(error: Exception) -> Dict[str, Any]:
        """
        Handle database errors

        Details are logged, never returned.

        Args:
            error: Database exception

        Returns:
            Error dictionary with message
        """
        details = str(error.orig) if hasattr(error, 'orig') else str(error)

        if isinstance(error, IntegrityError):
            logger.warning(f"Database integrity error: {details}")
            return {
                "error": "integrity_error",
                "message": "Data integrity violation. Duplicate entry or constraint failed."
            }

        elif isinstance(error, (OperationalError, DBAPIError)):
            logger.error(f"Database error: {details}")
            return {
                "error": "database_error",
                "message": "An error occurred while executing a database query."
            }

        else:
            logger.error(f"Unknown database error: {error}")
            return {
                "error": "unknown",
                "message": "An unexpected database error occurred."
            }

    @staticmethod
    def handle_validation_error(error: RequestValidationError) -> Dict[str, Any]:
        """
        Handle request validation errors

        Args:
            error: Validation exception

        Returns:
            Error dictionary with one entry per invalid field
        """
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg", "")}
            for err in error.errors()
        ]
        logger.info(f"Validation error: {details}")
        return {
            "error": "validation_error",
            "message": "Request validation failed.",
            "details": details
        }

    @staticmethod
    def handle_generic_error(error: Exception) -> Dict[str, Any]:
        """
        Handle generic/unknown errors

        Args:
            error: Exception

        Returns:
            Error dictionary
        """
        logger.error(f"Unexpected error: {error}\n{traceback.format_exc()}")
        return {
            "error": "internal_error",
            "message": "An unexpected error occurred. Please try again.",
            "type": type(error).__name__
        }


# Global exception handlers for FastAPI

async def chat_error_handler(request: Request, exc: ChatError):
    """FastAPI exception handler for ChatError codes"""
    if exc.surface != "database":
        logger.info(f"{request.method} {request.url.path} -> {exc.code}")
    return exc.to_response()


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """FastAPI exception handler for invalid requests (400 instead of 422)"""
    error_data = ErrorHandler.handle_validation_error(exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_data
    )


async def openai_error_handler(request: Request, exc: APIError):
    """FastAPI exception handler for OpenAI errors"""
    error_data = ErrorHandler.handle_openai_error(exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=error_data
    )


async def database_error_handler(request: Request, exc: DBAPIError):
    """FastAPI exception handler for database errors"""
    error_data = ErrorHandler.handle_database_error(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_data
    )


async def generic_error_handler(request: Request, exc: Exception):
    """FastAPI exception handler for generic errors"""
    error_data = ErrorHandler.handle_generic_error(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_data
    )


# Setup function for FastAPI app
def setup_error_handlers(app):
    """
    Setup global error handlers for FastAPI app

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(ChatError, chat_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(APIError, openai_error_handler)
    app.add_exception_handler(DBAPIError, database_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    logger.info("Error handlers registered")
