"""Application settings and configuration.

This module defines all configuration options for the Link Manager.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Database configuration
    database_url: str = Field(default="sqlite:///./link_manager.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Order-key maintenance
    ordering_rebalance_threshold: int = Field(
        default=20,
        alias="ORDERING_REBALANCE_THRESHOLD",
    )
    ordering_rebalance_spacing: int = Field(
        default=10,
        alias="ORDERING_REBALANCE_SPACING",
    )
    # Placement attempts before a racing writer is reported as a conflict.
    ordering_max_retries: int = Field(default=3, ge=1, alias="ORDERING_MAX_RETRIES")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalize the log level and reject unknown names."""
        upper = value.upper()
        if upper not in _LOG_LEVELS:
            raise ValueError(f"Invalid log level {value!r}; expected one of {sorted(_LOG_LEVELS)}")
        return upper


settings = Settings()
