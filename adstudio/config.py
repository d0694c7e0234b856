"""Application configuration using Pydantic Settings."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# config.py is in adstudio/, so the project root is one level up
_CONFIG_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _CONFIG_DIR.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="Ad Studio", description="Application name")
    app_env: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Root log level", alias="LOG_LEVEL")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Origins allowed by the CORS middleware",
        alias="CORS_ORIGINS",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./adstudio.db",
        description="Database connection URL (PostgreSQL in production)",
        alias="DATABASE_URL",
    )

    # Image generation (fal.ai)
    fal_key: str | None = Field(
        default=None,
        description="fal.ai API key",
        alias="FAL_KEY",
    )
    fal_model: str = Field(
        default="fal-ai/flux/dev",
        description="Text-to-image model identifier",
        alias="FAL_MODEL",
    )
    fal_img2img_model: str = Field(
        default="fal-ai/flux/dev/image-to-image",
        description="Image-to-image model identifier",
        alias="FAL_IMG2IMG_MODEL",
    )
    fal_timeout_seconds: float = Field(
        default=120.0,
        description="Hard timeout for a single image generation call",
        alias="FAL_TIMEOUT_SECONDS",
    )

    # LLM Provider
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key",
        alias="OPENAI_API_KEY",
    )
    openai_chat_model_id: str | None = Field(
        default="gpt-4o",
        description="OpenAI chat model ID used for campaign planning",
        alias="OPENAI_CHAT_MODEL_ID",
    )

    # Campaign batches
    batch_concurrency: int = Field(
        default=3,
        description="Maximum image generation calls in flight per batch",
        alias="BATCH_CONCURRENCY",
    )
    batch_max_items: int = Field(
        default=20,
        description="Maximum number of jobs accepted in one batch",
        alias="BATCH_MAX_ITEMS",
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v: str | None) -> str:
        """Validate and normalize database URL."""
        if v is None or v == "":
            raise ValueError("DATABASE_URL is required")
        return v.strip()

    @field_validator("app_env", mode="before")
    @classmethod
    def normalize_app_env(cls, v: str) -> str:
        """Normalize app environment to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        if isinstance(v, str):
            return v.upper().strip()
        return v

    @field_validator("fal_key", "openai_api_key", mode="before")
    @classmethod
    def blank_key_is_none(cls, v: str | None) -> str | None:
        """Treat empty API keys as missing."""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("batch_concurrency", "batch_max_items")
    @classmethod
    def require_positive(cls, v: int) -> int:
        """Batch limits must be at least 1."""
        if v < 1:
            raise ValueError("must be at least 1")
        return v


def get_settings() -> Settings:
    """Get application settings instance.

    Returns:
        Settings: Application settings instance

    Example:
        ```python
        from adstudio.config import get_settings

        settings = get_settings()
        print(settings.fal_model)
        ```
    """
    return Settings()


# Global settings instance
settings = get_settings()
