"""Application configuration management using Pydantic Settings.

This module loads and validates environment variables using Pydantic Settings.
All configuration is loaded from environment variables or a .env file.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CATALOGS_DIR = Path(__file__).parent / "catalogs"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Attributes:
        api_base_url: Base URL of the FokusHub platform REST API
        api_timeout_seconds: Seconds before a platform request times out
        token_file: File holding the persisted bearer token
        database_url: Connection string for the local draft store
        database_pool_size: Number of connections to maintain in pool
        database_max_overflow: Maximum overflow connections beyond pool_size
        environment: Application environment (development, staging, production)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        minimum_participant_age: Youngest age allowed to join as a participant
        max_upload_bytes: Largest verification image accepted for upload
        settings_catalog_path: YAML file declaring admin setting types
        notices_catalog_path: YAML file with user-facing notice templates
        git_commit_sha: Git commit SHA reported at startup
    """

    # Platform API
    api_base_url: str = Field(
        description="Base URL of the FokusHub platform REST API"
    )
    api_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Request timeout for platform API calls"
    )
    token_file: str = Field(
        default=str(Path.home() / ".fokushub" / "token.json"),
        description="Path of the persisted bearer token"
    )

    # Draft store
    database_url: str = Field(
        default="sqlite:///./fokushub_drafts.db",
        description="Connection string for the local draft store"
    )
    database_pool_size: int = Field(
        default=5,
        description="Number of database connections in pool"
    )
    database_max_overflow: int = Field(
        default=10,
        description="Maximum overflow connections beyond pool size"
    )

    # Application Configuration
    environment: str = Field(
        default="development",
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    git_commit_sha: str = Field(
        default="local",
        description="Git commit SHA for versioning"
    )

    # Participant rules
    minimum_participant_age: int = Field(
        default=18,
        ge=0,
        description="Minimum participant age derived from date of birth"
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        gt=0,
        description="Largest verification upload accepted"
    )
    participant_cache_limit: int = Field(
        default=500,
        gt=0,
        description="Participants whose query caches are kept in memory"
    )

    # Catalogs
    settings_catalog_path: str = Field(
        default=str(CATALOGS_DIR / "admin_settings.yaml"),
        description="YAML catalog of admin setting definitions"
    )
    notices_catalog_path: str = Field(
        default=str(CATALOGS_DIR / "notices.yaml"),
        description="YAML catalog of notice templates"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed = {"development", "staging", "production"}
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v_upper

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Validate the platform URL is http(s) and strip the trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("API base URL must start with http:// or https://")
        return v.rstrip("/")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton

    Note:
        Uses lru_cache to ensure settings are only loaded once
        and shared across the application.
    """
    return Settings()
