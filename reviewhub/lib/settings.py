"""
Application settings loaded from environment variables.
Uses pydantic-settings for validation and .env file support.
"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """ReviewHub core configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="REVIEWHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./reviewhub.db",
        description="SQLAlchemy async connection string for the review tables"
    )

    # Logging
    debug: bool = Field(default=False, description="Debug mode (SQL echo, DEBUG logs)")
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=True, description="Emit logs as JSON lines")

    # Unified inbox
    inbox_default_limit: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Page size used when the caller does not pass one"
    )
    inbox_max_limit: int = Field(
        default=100,
        ge=1,
        le=500,
        description="Upper bound for a requested page size"
    )

    # Keyword extraction
    keyword_limit: int = Field(default=10, ge=1, le=100, description="Top keywords in a standard report")
    keyword_limit_detailed: int = Field(default=20, ge=1, le=100, description="Top keywords in a detailed report")


# Global settings instance
settings = Settings()
