"""
Application configuration using Pydantic Settings.

Values are read from environment variables and an optional .env file.
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful, empathetic, and knowledgeable AI doctor. "
    "You are capable of providing basic medical advice, triaging symptoms, "
    "and suggesting when someone should see a real doctor. "
    "You do not diagnose or prescribe. Always recommend consulting a human doctor "
    "for serious or persistent issues. Respond in a professional and clear tone."
)


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
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Conversation store
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./carechat.db"

    # Title shown until the first user message arrives
    DEFAULT_CHAT_TITLE: str = "New Chat"
    CHAT_TITLE_MAX_LENGTH: int = 30

    # ===========================================
    # LLM Configuration
    # ===========================================
    # LiteLLM model identifier (OpenAI, Bedrock, etc.)
    LITELLM_MODEL: str = "gpt-4o-mini"

    # LiteLLM custom endpoint (optional, for proxy servers)
    LITELLM_API_BASE: str = ""

    # LiteLLM custom API key (optional, overrides provider env vars)
    LITELLM_API_KEY: str = ""

    LLM_TEMPERATURE: float = 0.7

    SYSTEM_PROMPT: str = DEFAULT_SYSTEM_PROMPT

    # ===========================================
    # Inference endpoint (client side)
    # ===========================================
    INFERENCE_URL: str = "http://localhost:8000/api/chat"
    INFERENCE_CONNECT_TIMEOUT_SECONDS: float = 10.0

    # Max wait between two fragments before the turn is abandoned (0 = no limit)
    STREAM_IDLE_TIMEOUT_SECONDS: float = 120.0

    # ===========================================
    # Chat list
    # ===========================================
    CHAT_LIST_DISPLAY_LIMIT: int = 15

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"]
    )

    @property
    def stream_idle_timeout(self) -> float | None:
        """Idle timeout in seconds, or None when disabled."""
        if self.STREAM_IDLE_TIMEOUT_SECONDS <= 0:
            return None
        return self.STREAM_IDLE_TIMEOUT_SECONDS


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
