"""Type-safe environment configuration using Pydantic Settings."""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration loaded from environment variables.

    Every field has a default so the loader runs without a .env file.
    Invalid values raise validation errors on load.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields in .env
        env_ignore_empty=True,
    )

    APP_NAME: str = Field(
        default="hn-top-stories",
        description="Application name"
    )

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )

    DEBUG: bool = Field(
        default=False,
        description="Debug mode flag"
    )

    # Hacker News API
    HN_API_BASE_URL: str = Field(
        default="https://hacker-news.firebaseio.com/v0",
        description="Base URL of the Hacker News JSON API"
    )

    API_TIMEOUT: float = Field(
        default=30.0,
        description="HTTP timeout in seconds",
        gt=0  # Must be greater than 0
    )

    # Windowing
    PAGE_SIZE: int = Field(
        default=100,
        description="Number of story ids fetched per refresh",
        gt=0
    )

    WINDOW_START: int = Field(
        default=0,
        description="Offset of the first story id fetched per refresh",
        ge=0
    )

    # Retry policy for transient transport errors
    FETCH_MAX_RETRIES: int = Field(
        default=0,
        description="Retry attempts per request (0 disables retries)",
        ge=0
    )

    FETCH_RETRY_DELAY: float = Field(
        default=0.5,
        description="Initial delay between retries in seconds",
        gt=0
    )

    FETCH_BACKOFF_FACTOR: float = Field(
        default=2.0,
        description="Multiplier applied to the retry delay after each attempt",
        ge=1
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {valid_levels}, got '{v}'"
            )
        return v_upper

    @field_validator("HN_API_BASE_URL")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL and strip the trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"HN_API_BASE_URL must be an http(s) URL, got '{v}'"
            )
        return v.rstrip("/")


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Loads settings from environment variables and .env file on first call.
    Subsequent calls return the cached instance.

    Returns:
        Settings: The application settings instance

    Raises:
        ValidationError: If environment variables hold invalid values
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the settings singleton. Useful for testing."""
    global _settings
    _settings = None
