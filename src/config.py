"""
Type-safe configuration using Pydantic Settings
Validates environment variables and provides sensible defaults
"""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class AppConfig(BaseSettings):
    """
    Application configuration with validation
    Automatically loads from environment variables and .env file
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Database settings
    database_url: str = Field(
        "sqlite:///notemore.db", description="SQLAlchemy database URL"
    )
    sqlite_busy_timeout: float = Field(
        5.0,
        gt=0,
        le=60,
        description="Seconds a SQLite writer waits for a lock before giving up",
    )
    sql_echo: bool = Field(False, description="Log every SQL statement")

    # Quota settings
    free_tier_limit: int = Field(
        5,
        ge=1,
        le=1000,
        description="Items of each resource type a 'user' role account may own",
    )
    conflict_retries: int = Field(
        3,
        ge=0,
        le=10,
        description="Re-attempts of an atomic operation after a store conflict",
    )

    log_level: str = Field("INFO", description="Root logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name"""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"LOG_LEVEL must be a logging level name, got {v!r}")
        return level

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


# Singleton instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get or create the global configuration instance

    Returns:
        AppConfig: Validated configuration

    Raises:
        ValidationError: If configuration is invalid
    """
    global _config
    if _config is None:
        _config = AppConfig()
    return _config


def reload_config() -> AppConfig:
    """Force reload configuration from environment"""
    global _config
    _config = AppConfig()
    return _config


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging with the application format"""
    logging.basicConfig(
        format=LOG_FORMAT,
        level=level or get_config().log_level,
    )
