"""
Retry Logic Utilities

Provides automatic retry mechanisms for external API calls with exponential backoff.
"""

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
    after_log
)
from openai import APIConnectionError, RateLimitError, APITimeoutError, InternalServerError
from chatapp.config import settings
import logging

logger = logging.getLogger(__name__)


def retry_on_api_error(max_attempts: int = None):
    """
    Decorator for retrying on transient API errors

    Retries on:
    - Rate limit errors
    - Timeout and connection errors
    - Provider 5xx errors

    Client errors (bad request, auth) are raised immediately.

    Args:
        max_attempts: Maximum retry attempts (default: settings.RETRY_MAX_ATTEMPTS)

    Returns:
        Tenacity retry decorator
    """
    max_attempts = max_attempts or settings.RETRY_MAX_ATTEMPTS

    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=1,
            min=2,
            max=30,
            exp_base=settings.RETRY_EXPONENTIAL_BASE
        ),
        retry=retry_if_exception_type((
            RateLimitError,
            APITimeoutError,
            APIConnectionError,
            InternalServerError,
            ConnectionError,
            TimeoutError
        )),
        reraise=True,
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.DEBUG)
    )
