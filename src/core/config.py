"""Configuration management for farmtasks."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # SQLite Configuration
    sqlite_db_path: str = Field(default="data/farmtasks.db", description="Path to the SQLite database file")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Farm Calendar Configuration
    farm_timezone: str = Field(
        default="UTC",
        description="IANA timezone used to decide what 'today' is for due dates (e.g., 'Africa/Nairobi')",
    )

    # Scheduler Configuration
    enable_scheduler: bool = Field(default=True, description="Enable/disable the background job scheduler")
    overdue_sweep_hour: int = Field(default=0, description="Hour of day (0-23) the overdue sweep runs")

    @field_validator("overdue_sweep_hour")
    @classmethod
    def validate_sweep_hour(cls, v: int) -> int:
        """Validate the sweep hour is a valid hour of day."""
        if not 0 <= v <= 23:  # noqa: PLR2004
            msg = "overdue_sweep_hour must be between 0 and 23"
            raise ValueError(msg)
        return v


# Application Constants
class Constants:
    """Application-wide constants."""

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_BAD_REQUEST: int = 400
    HTTP_NOT_FOUND: int = 404
    HTTP_CONFLICT: int = 409
    HTTP_SERVER_ERROR: int = 500
    HTTP_SERVICE_UNAVAILABLE: int = 503

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 100  # Default pagination limit for list queries
    MAX_PER_PAGE_LIMIT: int = 1000  # Upper bound used when a full scan is needed

    # Identifier prefixes for embedded records
    SUBTASK_ID_PREFIX: str = "st"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
