"""
Unit tests for log sanitizing and rate limit keys
"""

import pytest
from unittest.mock import MagicMock

from chatapp.core.security import create_session_token, hash_session_id
from chatapp.middleware.rate_limiter import rate_limit_key
from chatapp.utils.sanitize import (
    get_safe_token_display,
    sanitize_string,
)


def _request(cookies=None, headers=None, host="10.0.0.1"):
    request = MagicMock()
    request.cookies = cookies or {}
    request.headers = headers or {}
    request.client.host = host
    return request


@pytest.mark.unit
class TestSanitize:
    """Test suite for sanitize helpers"""

    def test_session_tokens_in_strings(self):
        token = create_session_token("user-1", "guest")
        sanitized = sanitize_string(f"failed to decode {token}")

        assert token not in sanitized
        assert "REDACTED" in sanitized

    def test_provider_keys_and_cookies(self):
        text = "key=sk-abcdefghijklmnopqrstuvwxyz cookie admin_session=secretvalue"
        sanitized = sanitize_string(text)

        assert "sk-abcdefghijklmnopqrstuvwxyz" not in sanitized
        assert "secretvalue" not in sanitized

    def test_safe_token_display(self):
        assert get_safe_token_display("eyJhbGciOiJIUzI1NiJ9.payload.sig") == "eyJhbGciOi...***"
        assert get_safe_token_display("short") == "***REDACTED***"
        assert get_safe_token_display(None) == "***INVALID***"


@pytest.mark.unit
class TestRateLimitKey:
    """Test suite for rate limit keys"""

    def test_cookie_session(self):
        request = _request(cookies={"session-token": "tok"})
        assert rate_limit_key(request) == f"session:{hash_session_id('tok')}"

    def test_bearer_session(self):
        request = _request(headers={"Authorization": "Bearer tok"})
        assert rate_limit_key(request) == f"session:{hash_session_id('tok')}"

    def test_ip_fallback(self):
        assert rate_limit_key(_request(host="10.0.0.9")) == "ip:10.0.0.9"
