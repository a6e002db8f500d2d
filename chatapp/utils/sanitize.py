"""
Security utility for sanitizing sensitive data in logs and errors
Prevents session tokens, cookies and API keys from being exposed in logs
"""

import re
import logging

logger = logging.getLogger(__name__)

# Patterns to detect and redact sensitive data
SENSITIVE_PATTERNS = [
    (re.compile(r'(eyJ[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+)'), 'jwt-***REDACTED***'),  # Session JWTs
    (re.compile(r'(sk-[a-zA-Z0-9_\-]{20,})'), 'sk-***REDACTED***'),  # Provider keys
    (re.compile(r'(Bearer\s+[a-zA-Z0-9_\-\.]+)'), 'Bearer ***REDACTED***'),  # Bearer tokens
    (re.compile(r'((?:session-token|admin_session)=[^;\s]+)'), r'session=***REDACTED***'),  # Cookies
]


def sanitize_string(text: str) -> str:
    """
    Remove sensitive patterns from string

    Args:
        text: String that may contain sensitive data

    Returns:
        Sanitized string with patterns redacted
    """
    if not isinstance(text, str):
        return text

    sanitized = text
    for pattern, replacement in SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)

    return sanitized


def get_safe_token_display(token: str) -> str:
    """
    Get safe version of a session token for logging (only prefix)

    Args:
        token: Full token

    Returns:
        Safe display string (e.g., "eyJhbGciOi...***")
    """
    if not token or not isinstance(token, str):
        return "***INVALID***"

    if len(token) < 12:
        return "***REDACTED***"

    return f"{token[:10]}...***"
