"""
Configuration management using environment variables.
Handles all API settings with proper validation and defaults.
"""

from typing import List, Optional
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_COVER_TYPES = ["image/jpeg", "image/png", "image/webp", "image/gif"]


class BookStoreConfig(BaseSettings):
    """
    Configuration class for the book store API.
    Uses pydantic BaseSettings for environment variable management.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields from .env
        populate_by_name=True,
    )

    # MongoDB Configuration
    mongodb_url: str = Field(
        default="mongodb://localhost:27017",
        validation_alias=AliasChoices("MONGO_URI", "MONGODB_URL"),
    )
    mongodb_database: str = Field(default="bookstore")
    mongodb_collection: str = Field(default="bookstores")

    # Server Settings
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    debug: bool = Field(default=False)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    log_file: Optional[str] = Field(default=None)

    # Cover uploads
    upload_dir: str = Field(default="uploads")
    uploads_url_prefix: str = Field(default="/uploads")
    public_base_url: Optional[str] = Field(default=None)
    max_cover_bytes: int = Field(default=2 * 1024 * 1024)
    allowed_cover_types: List[str] = Field(default_factory=lambda: list(DEFAULT_COVER_TYPES))

    # CORS Settings
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator("port")
    @classmethod
    def validate_port(cls, v):
        """Ensure port is a usable TCP port."""
        if v < 1 or v > 65535:
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("max_cover_bytes")
    @classmethod
    def validate_max_cover_bytes(cls, v):
        if v <= 0:
            raise ValueError("max_cover_bytes must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    @field_validator("uploads_url_prefix")
    @classmethod
    def validate_uploads_url_prefix(cls, v):
        """Normalise the prefix to a leading slash and no trailing slash."""
        v = "/" + v.strip("/")
        if v == "/":
            raise ValueError("uploads_url_prefix must not be the site root")
        return v

    @field_validator("public_base_url")
    @classmethod
    def validate_public_base_url(cls, v):
        if v:
            return v.rstrip("/")
        return None

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def get_upload_dir_path(self) -> Path:
        """Get upload directory as Path object."""
        return Path(self.upload_dir)


# Global configuration instance
config = BookStoreConfig()
