# src/file_groups/config/settings.py
import logging
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    Usage:
        from file_groups.config.settings import get_settings
        settings = get_settings()
        uri = settings.mongodb_uri
    """

    # Application Settings
    app_name: str = Field(
        default="file-groups",
        description="Application name"
    )

    # MongoDB Configuration
    mongodb_uri: str = Field(
        default="mongodb://localhost:27017/file_groups",
        alias="MONGODB_URI",
        description="MongoDB connection string"
    )

    mongodb_database: Optional[str] = Field(
        default=None,
        alias="MONGODB_DATABASE",
        description="Database name (taken from the URI path if not set)"
    )

    files_bucket_name: str = Field(
        default="files",
        description="GridFS bucket holding uploaded blobs"
    )

    groups_collection: str = Field(
        default="groups",
        description="Collection holding group documents"
    )

    # Upload behaviour
    strict_uploads: bool = Field(
        default=False,
        description="Raise upload write failures instead of only logging them"
    )

    # HTTP
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Origins allowed by the CORS middleware"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is one the logging module knows."""
        level = v.upper()
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if level not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return level

    @field_validator('mongodb_uri')
    @classmethod
    def validate_mongodb_uri(cls, v):
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError("mongodb_uri must start with mongodb:// or mongodb+srv://")
        return v

    def get_environment_dict(self) -> dict:
        """Get configuration as a dictionary suitable for docker-compose or subprocess.

        Returns:
            Dictionary of environment variables
        """
        return {
            'APP_NAME': self.app_name,
            'MONGODB_URI': self.mongodb_uri,
            'MONGODB_DATABASE': self.mongodb_database or '',
            'FILES_BUCKET_NAME': self.files_bucket_name,
            'GROUPS_COLLECTION': self.groups_collection,
            'STRICT_UPLOADS': str(self.strict_uploads).lower(),
            'LOG_LEVEL': self.log_level,
        }

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Apply the configured log level to the root logger."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
