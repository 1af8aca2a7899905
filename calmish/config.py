"""Application Configuration - environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) - single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: runs out-of-the-box on SQLite
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Local state storage
    storage_url: str = "sqlite:///calmish.db"
    storage_prefix: str = "calmish"

    @field_validator("storage_prefix")
    @classmethod
    def strip_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("_")
        if not v:
            raise ValueError("storage_prefix cannot be empty")
        return v

    # Anthropic (companion chat service)
    anthropic_api_key: str = "sk-ant-placeholder"
    anthropic_max_retries: int = 3
    anthropic_timeout_seconds: int = 60
    anthropic_base_delay_ms: int = 1000
    anthropic_max_delay_ms: int = 30_000

    chat_model: str = "claude-3-5-haiku-latest"
    chat_max_tokens: int = 2048
    chat_temperature: float = Field(0.7, ge=0.0, le=1.0)

    # 50 requests per client per 15 minutes
    chat_rate_limit_max: int = 50
    chat_rate_limit_window_seconds: int = 15 * 60

    # Companion chat client (app side)
    chat_service_url: str = "http://localhost:3001"
    chat_timeout_seconds: float = 30.0

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
