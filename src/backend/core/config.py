"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables (or a local .env file).
"""

from functools import lru_cache
from typing import Any, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Sliich"
    APP_ENV: str = "development"
    DEBUG: bool = False
    SECRET_KEY: str = ""  # Required - shared with the identity provider

    # Database - PostgreSQL in production, SQLite for local runs and tests
    DATABASE_URL: str = ""
    DATABASE_ECHO: bool = False
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "sliich"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "sliich"

    @field_validator("SECRET_KEY")
    @classmethod
    def validate_required_secrets(cls, v: str, info: Any) -> str:
        """Validate that required secrets are set."""
        if not v:
            raise ValueError(f"{info.field_name} must be set in environment")
        return v

    @property
    def database_url(self) -> str:
        """Explicit DATABASE_URL, or a PostgreSQL URL built from the POSTGRES_* parts."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # Authentication (tokens are issued by the external identity provider)
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # CORS - stored as comma-separated string to avoid pydantic-settings JSON parsing issues
    CORS_ORIGINS: str = "http://localhost:3000"

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        import json

        try:
            return json.loads(self.CORS_ORIGINS)
        except json.JSONDecodeError:
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    # Messages
    MAX_MESSAGE_LENGTH: int = 2000

    # Polls
    MAX_POLL_OPTIONS: int = 10
    # "allow": votes without a respondent id are accepted and never collide.
    # "require_respondent": votes must carry a respondent id.
    ANONYMOUS_VOTE_POLICY: Literal["allow", "require_respondent"] = "allow"

    # Analytics
    ANALYTICS_TIMEZONE: str = "UTC"
    WEEK_START_DAY: int = 6  # datetime.weekday() of day index 0 (6 = Sunday)

    @field_validator("WEEK_START_DAY")
    @classmethod
    def validate_week_start(cls, v: int) -> int:
        if not 0 <= v <= 6:
            raise ValueError("WEEK_START_DAY must be between 0 (Monday) and 6 (Sunday)")
        return v

    # Realtime fan-out
    FANOUT_QUEUE_SIZE: int = 100
    FANOUT_RECONNECT_DELAY_SECONDS: float = 1.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
