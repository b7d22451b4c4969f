import os
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_database_url() -> str:
    """Get database URL, using absolute path for SQLite to avoid path resolution issues.

    SQLite is meant for local development only. Set DATABASE_URL to a
    PostgreSQL connection string for anything shared.
    """
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        logger.info(f"Using DATABASE_URL from environment: {db_url}")
        return db_url

    db_path = Path(__file__).parent.parent.parent / "studyplan.db"
    abs_path = db_path.resolve()
    db_url = f"sqlite:///{abs_path}"
    logger.warning(f"Using SQLite database (LOCAL DEV ONLY): {db_url}")
    return db_url


class Settings(BaseSettings):
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="DATABASE_URL",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    dev_user_id: str = Field(default="", validation_alias="DEV_USER_ID")
    max_upload_bytes: int = Field(
        default=5 * 1024 * 1024,
        validation_alias="MAX_UPLOAD_BYTES",
        description="Largest accepted import file, in bytes",
    )
    bulk_commit_timeout_seconds: float = Field(
        default=0.0,
        validation_alias="BULK_COMMIT_TIMEOUT_SECONDS",
        description="Deadline for one bulk commit; 0 disables the deadline",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(sorted(valid_levels))}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("max_upload_bytes")
    @classmethod
    def validate_max_upload_bytes(cls, value: int) -> int:
        """Validate upload limit is positive."""
        if value <= 0:
            raise ValueError("MAX_UPLOAD_BYTES must be > 0")
        return value

    @field_validator("bulk_commit_timeout_seconds")
    @classmethod
    def validate_bulk_commit_timeout(cls, value: float) -> float:
        """Validate bulk commit timeout is not negative."""
        if value < 0:
            raise ValueError("BULK_COMMIT_TIMEOUT_SECONDS must be >= 0")
        return value


settings = Settings()
