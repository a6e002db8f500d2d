"""
Utility Functions and Classes

Provides retry logic, error handling, log sanitizing and UTC helpers.
"""

from chatapp.utils.retry import retry_on_api_error
from chatapp.utils.error_handlers import (
    ErrorHandler,
    setup_error_handlers
)

__all__ = [
    "retry_on_api_error",
    "ErrorHandler",
    "setup_error_handlers"
]
