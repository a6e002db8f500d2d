"""
Configuration management for the chat platform API
Uses pydantic-settings for environment variable validation
"""

from pydantic_settings import BaseSettings
from pydantic import model_validator
from typing import List, Dict
import os


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = "sqlite:///./chatapp.db"  # Override with postgresql+psycopg2://... in deployments

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_RELOAD: bool = True
    DEBUG: bool = False

    # Security (all from environment - no defaults for secrets in production)
    SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "session-token"
    SESSION_MAX_AGE_DAYS: int = 30
    SESSION_COOKIE_SECURE: bool = False
    ADMIN_SESSION_COOKIE_NAME: str = "admin_session"
    ADMIN_SESSION_MAX_AGE_DAYS: int = 7

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:3001"]

    # Application
    APP_NAME: str = "Chat Platform"
    APP_VERSION: str = "0.1.0"

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"

    # Resumable streams (Redis streams keyed by stream id)
    RESUMABLE_STREAMS_ENABLED: bool = True
    STREAM_TTL_SECONDS: int = 3600
    STREAM_POLL_INTERVAL: float = 0.05
    STREAM_RESTORE_WINDOW_SECONDS: int = 15

    # OpenAI (embeddings)
    OPENAI_API_KEY: str = ""
    EMBEDDING_MODEL: str = "text-embedding-3-small"
    EMBEDDING_DIMENSIONS: int = 1536

    # LLM Provider (LiteLLM model strings, provider/model)
    CHAT_MODEL: str = "xai/grok-2-vision-1212"
    REASONING_MODEL: str = "xai/grok-3-mini"
    TITLE_MODEL: str = "xai/grok-2-1212"
    CHAT_TEMPERATURE: float = 0.7
    CHAT_MAX_TOKENS: int = 2000
    CHAT_HISTORY_LIMIT: int = 50
    LLM_API_KEY: str = ""
    LLM_API_BASE: str = ""  # Optional: custom API base URL
    LLM_TIMEOUT: int = 60  # Timeout in seconds for LLM requests

    # Entitlements (messages per 24 hours by user type)
    GUEST_MAX_MESSAGES_PER_DAY: int = 20
    REGULAR_MAX_MESSAGES_PER_DAY: int = 100

    # RAG upload
    RAG_MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB
    RAG_CHUNK_SIZE: int = 2000
    RAG_CHUNK_OVERLAP: int = 200

    # Caching
    CACHE_ENABLED: bool = True
    CACHE_EMBEDDING_TTL: int = 86400  # 24 hours

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_CHAT: str = "30/minute"
    RATE_LIMIT_UPLOAD: str = "20/hour"
    RATE_LIMIT_AUTH: str = "10/minute"

    # Retry Logic
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_EXPONENTIAL_BASE: int = 2

    @model_validator(mode='after')
    def detect_docker_environment(self):
        """
        Detect if running inside Docker container and adjust URLs accordingly

        Replacements:
          - localhost:5432 → postgres:5432 (PostgreSQL)
          - localhost:6379 → redis:6379 (Redis)

        Detection method: Check for /.dockerenv file (created by Docker)
        """
        if os.path.exists('/.dockerenv'):
            if 'localhost' in self.DATABASE_URL:
                self.DATABASE_URL = self.DATABASE_URL.replace('localhost', 'postgres')

            if 'localhost' in self.REDIS_URL:
                self.REDIS_URL = self.REDIS_URL.replace('localhost', 'redis')

        return self

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()


# Selectable chat models exposed to clients
# Maps public model id to the LiteLLM model string and reasoning flag
CHAT_MODELS: Dict[str, Dict] = {
    "chat-model": {
        "name": "Chat model",
        "description": "Primary model for all-purpose chat",
        "reasoning": False,
    },
    "chat-model-reasoning": {
        "name": "Reasoning model",
        "description": "Uses advanced reasoning",
        "reasoning": True,
    },
}
