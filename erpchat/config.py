"""
Application Configuration

Pydantic-based settings management using environment variables.
Supports nested configuration, validation, and caching.

Usage:
    from erpchat.config import get_settings

    settings = get_settings()
    print(settings.llm.google_model)
    print(settings.pipeline.history_window)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """Reasoning service configuration."""

    default_provider: Literal["openai", "google"] = Field(
        default="google", description="LLM provider used for every reasoning step"
    )

    # OpenAI configuration
    openai_api_key: str | None = Field(
        None,
        description="OpenAI API key",
        min_length=20,
    )
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI model")

    # Google configuration
    google_api_key: str | None = Field(None, description="Google AI API key")
    google_model: str = Field(default="gemini-2.5-flash", description="Gemini model")

    # Common settings
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Temperature for LLM responses (0.0 = deterministic)",
    )
    max_tokens: int = Field(
        default=8192,
        gt=0,
        le=65536,
        description="Maximum tokens per LLM response",
    )
    timeout: int = Field(
        default=60,
        gt=0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("openai_api_key")
    @classmethod
    def validate_openai_key(cls, v: str | None) -> str | None:
        """Validate OpenAI API key format."""
        if v and not v.startswith("sk-"):
            raise ValueError("OpenAI API key must start with 'sk-'")
        return v

    @model_validator(mode="after")
    def validate_provider_keys(self) -> "LLMSettings":
        """Ensure an API key is set for the selected provider."""
        provider_key_map = {
            "openai": self.openai_api_key,
            "google": self.google_api_key,
        }
        if not provider_key_map[self.default_provider]:
            raise ValueError(
                f"API key required for {self.default_provider} provider. "
                f"Set LLM_{self.default_provider.upper()}_API_KEY"
            )
        return self


class FrappeSettings(BaseSettings):
    """Frappe REST transport configuration."""

    timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout in seconds for Frappe requests",
    )
    list_limit: int = Field(
        default=0,
        ge=0,
        description="Page length used when listing DocTypes (0 = all)",
    )
    verify_ssl: bool = Field(
        default=True,
        description="Verify TLS certificates of the Frappe site",
    )

    model_config = SettingsConfigDict(
        env_prefix="FRAPPE_",
        env_file=".env",
        extra="ignore",
    )


class PipelineSettings(BaseSettings):
    """Conversation pipeline behavior settings."""

    history_window: int = Field(
        default=6,
        ge=0,
        le=100,
        description="Number of recent conversation turns included as short-term memory.",
    )
    max_relevant_tables: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum DocTypes the relevance selector may return.",
    )
    row_payload_chars: int = Field(
        default=50000,
        ge=1000,
        le=500000,
        description="Maximum characters of serialized rows sent to the insight step.",
    )
    default_query_limit: int = Field(
        default=100,
        ge=1,
        description="Row limit applied when the synthesized query omits one.",
    )
    max_query_limit: int = Field(
        default=1000,
        ge=1,
        description="Upper bound applied to any synthesized row limit.",
    )

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_limits(self) -> "PipelineSettings":
        """Ensure the default limit fits under the maximum."""
        if self.default_query_limit > self.max_query_limit:
            raise ValueError(
                f"default_query_limit ({self.default_query_limit}) must not exceed "
                f"max_query_limit ({self.max_query_limit})"
            )
        return self


class StoreSettings(BaseSettings):
    """Session persistence configuration."""

    path: Path = Field(
        default=Path.home() / ".erpchat" / "session.json",
        description="JSON file holding chat history, connection and memory",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        env_file=".env",
        extra="ignore",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application log level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Log timestamp format",
    )
    file: Path | None = Field(
        default=None,
        description="Optional log file path (None = stdout only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    def configure(self) -> None:
        """Configure Python logging with these settings."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]

        if self.file:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))

        logging.basicConfig(
            level=getattr(logging, self.level),
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,
        )


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    Settings are nested by domain (llm, frappe, pipeline, store, logging).

    Environment Variables:
        ENVIRONMENT: Deployment environment (development, staging, production)
        APP_NAME: Application name for logging
        DEBUG: Enable debug mode
        API_HOST: API server host
        API_PORT: API server port
        CORS_ORIGINS: Allowed origins for the HTTP API
        LLM_*: Reasoning service configuration (see LLMSettings)
        FRAPPE_*: Frappe transport configuration (see FrappeSettings)
        PIPELINE_*: Pipeline behavior (see PipelineSettings)
        STORE_*: Session persistence (see StoreSettings)
        LOG_*: Logging configuration (see LoggingSettings)

    Example:
        >>> settings = get_settings()
        >>> settings.llm.default_provider
        'google'
        >>> settings.pipeline.max_relevant_tables
        3
    """

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    app_name: str = Field(
        default="ERPChat",
        description="Application name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        gt=0,
        le=65535,
        description="API server port",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed to call the HTTP API",
    )

    # Nested settings
    llm: LLMSettings = Field(default_factory=LLMSettings)
    frappe: FrappeSettings = Field(default_factory=FrappeSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @model_validator(mode="after")
    def configure_logging(self) -> "Settings":
        """Configure logging when settings are loaded."""
        self.logging.configure()
        return self

    def model_post_init(self, __context) -> None:
        """Log configuration on initialization."""
        logger = logging.getLogger(__name__)
        logger.info(
            f"Settings loaded for {self.app_name} ({self.environment})",
            extra={
                "environment": self.environment,
                "debug": self.debug,
                "llm_provider": self.llm.default_provider,
                "history_window": self.pipeline.history_window,
                "store_path": str(self.store.path),
            },
        )


_DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"


def _apply_dotenv_precedence() -> None:
    env_source = os.getenv("ERPCHAT_ENV_SOURCE", "dotenv").lower()
    if env_source not in {"dotenv", "envfile", "file"}:
        return
    if _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=True)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses functools.lru_cache so settings are loaded only once.

    Returns:
        Settings: Singleton settings instance
    """
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()
