"""Configuration management for Mail Indexer.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the MAIL_INDEXER_ prefix (e.g., MAIL_INDEXER_INDEX_DB_PATH).
    """

    model_config = SettingsConfigDict(
        env_prefix="MAIL_INDEXER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Record store configuration
    index_db_path: Path = Field(
        default=Path("mail_index.sqlite3"),
        description="Path to the local SQLite database storing parsed email records",
    )
    keyword_index_enabled: bool = Field(
        default=True,
        description=(
            "Create the full-text keyword index over subject and body when the store "
            "is initialized. Without it searches fall back to regex matching."
        ),
    )
    search_limit: int = Field(
        default=100,
        ge=1,
        description="Maximum number of records returned by a search",
    )

    # Ingestion configuration
    max_consecutive_skips: int = Field(
        default=10,
        ge=1,
        description="Abort an ingestion run after this many consecutive skipped sources",
    )
    source_glob: str = Field(
        default="*.txt",
        description="Glob pattern selecting message files inside each mail folder",
    )
    source_encoding: str = Field(
        default="utf-8",
        description="Text encoding used to read message files",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
