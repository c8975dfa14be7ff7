import os
import sys
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _should_load_env_file() -> str | None:
    """Determine if .env should be loaded.

    Local development reads `backend/.env` so `SECRET_KEY` and the admin
    seed credentials can live there. Under pytest or CI the file is skipped
    so missing secrets still fail fast.
    """
    if any("pytest" in str(x) for x in sys.argv if x):
        return None
    if os.environ.get("CI") in ("1", "true", "True"):
        return None
    return ".env"


class Settings(BaseSettings):
    # Environment configuration
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: 'development', 'staging', 'production' or 'test'",
    )

    DATABASE_URL: str = "sqlite:///./data/forum.db"
    SECRET_KEY: str = Field(
        ...,  # Required, no default
        description="JWT secret key - must be set via SECRET_KEY environment variable",
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=60 * 24 * 7,
        description="Access token lifetime in minutes (7 days)",
    )
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:5173"],
        description="Allowed CORS origins (comma-separated in env var)",
    )

    # Admin account seeded by init_db.py
    ADMIN_EMAIL: str = Field(
        ...,  # Required, no default
        description="Admin email - must be set via ADMIN_EMAIL environment variable",
    )
    ADMIN_PASSWORD: str = Field(
        ...,  # Required, no default
        description="Admin password - must be set via ADMIN_PASSWORD environment variable",
    )
    ADMIN_USERNAME: str = Field(
        default="admin",
        description="Username of the seeded admin account",
    )

    # Database connection pool settings
    DB_POOL_SIZE: int = Field(
        default=5,
        description="Number of persistent connections in pool",
    )
    DB_MAX_OVERFLOW: int = Field(
        default=10,
        description="Extra connections when pool exhausted",
    )
    DB_POOL_TIMEOUT: int = Field(
        default=30,
        description="Seconds to wait for connection from pool",
    )
    DB_POOL_RECYCLE: int = Field(
        default=1800,
        description="Recycle connections after N seconds (30 min default)",
    )

    AUTO_CREATE_DB: bool = Field(
        default=False,
        description="When true (development only), call Base.metadata.create_all on startup",
    )

    # Performance settings
    SLOW_REQUEST_THRESHOLD: float = Field(
        default=1.0,
        description="Log warning for requests slower than this (seconds)",
    )

    # Rate limits (slowapi notation)
    LOGIN_RATE_LIMIT: str = Field(
        default="10/minute",
        description="Rate limit applied to the login endpoint",
    )
    REGISTER_RATE_LIMIT: str = Field(
        default="5/minute",
        description="Rate limit applied to the register endpoint",
    )

    # Forum content limits
    SNIPPET_LENGTH: int = Field(
        default=140,
        description="Maximum characters of content copied into notification payloads",
    )
    POST_MAX_LENGTH: int = Field(
        default=5000,
        description="Maximum characters in a post body",
    )
    MESSAGE_MAX_LENGTH: int = Field(
        default=5000,
        description="Maximum characters in a direct message",
    )
    REPORT_REASON_MIN_LENGTH: int = Field(
        default=3,
        description="Minimum characters in a report reason (after trimming)",
    )
    REPORT_REASON_MAX_LENGTH: int = Field(
        default=500,
        description="Maximum characters in a report reason (after trimming)",
    )

    # Listing caps
    NOTIFICATION_LIST_LIMIT: int = Field(
        default=50,
        description="Maximum notifications returned by the inbox listing",
    )
    NOTIFICATION_MARK_READ_MAX: int = Field(
        default=200,
        description="Maximum notification ids accepted by one mark-read call",
    )
    REPORT_LIST_LIMIT: int = Field(
        default=200,
        description="Maximum reports returned to moderators",
    )
    BAN_LOG_LIMIT: int = Field(
        default=100,
        description="Maximum ban log entries returned to moderators",
    )
    TAG_AUDIT_LIMIT: int = Field(
        default=50,
        description="Maximum tag audit entries returned per query",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    model_config = SettingsConfigDict(
        env_file=_should_load_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",  # Allow extra env vars (e.g., SENTRY_DSN) without validation errors
    )


# Instantiating Settings() raises pydantic.ValidationError if SECRET_KEY is missing.
settings = Settings()  # type: ignore[call-arg]


def get_settings() -> Settings:
    """Get the settings instance (for dependency injection)."""
    return settings
