"""
Application configuration using Pydantic Settings.

Provider credentials, retry policy and conversation limits are all read from
the environment (or a local .env file).
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local", "production"] = "local"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Database
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./parley.db"

    # ===========================================
    # Model Providers
    # ===========================================
    # "fast" mode (OpenAI-compatible Groq endpoint)
    GROQ_API_KEY: str = ""
    GROQ_API_BASE: str = "https://api.groq.com/openai/v1"

    # "creative" mode (Gemini generateContent endpoint)
    GEMINI_API_KEY: str = ""
    GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta"

    # Upper bound for a single provider HTTP call
    PROVIDER_TIMEOUT_SECONDS: float = 30.0
    # Additional attempts after the first one (5xx / transport failures only)
    PROVIDER_MAX_RETRIES: int = 2
    PROVIDER_RETRY_BACKOFF_SECONDS: float = 1.0

    # ===========================================
    # Conversation
    # ===========================================
    HISTORY_WINDOW: int = 10
    NORMALIZER_MAX_DEPTH: int = 10
    MAX_MESSAGE_LENGTH: int = 4000
    GUEST_MESSAGE_LIMIT: int = 5
    GUEST_SESSION_TTL_SECONDS: int = 24 * 60 * 60
    GUEST_SESSION_MAX_ENTRIES: int = 10000
    STREAM_CHUNK_DELAY_SECONDS: float = 0.03

    # ===========================================
    # File Analysis
    # ===========================================
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    FILE_CONTENT_CHAR_LIMIT: int = 8000

    # ===========================================
    # Auth
    # ===========================================
    AUTH_PROVIDER: Literal["mock", "local"] = "mock"
    LOCAL_JWT_SECRET: str = ""
    LOCAL_JWT_ISSUER: str = "parley-local"
    LOCAL_JWT_EXPIRE_MINUTES: int = 60 * 24 * 7

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
