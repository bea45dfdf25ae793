"""
Centralized configuration management.
All environment variables and settings are defined here.
"""
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = Field(default="Firefly AI Categorizer", alias="APP_NAME")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    enable_ui: bool = Field(default=False, alias="ENABLE_UI")
    static_dir: str = Field(default="public", alias="STATIC_DIR")

    # Firefly III
    firefly_url: str = Field(..., alias="FIREFLY_URL")
    firefly_personal_token: str = Field(..., alias="FIREFLY_PERSONAL_TOKEN")
    firefly_tag: str = Field(default="AI categorized", alias="FIREFLY_TAG")
    firefly_timeout: int = Field(default=10, alias="FIREFLY_TIMEOUT")

    # OpenAI
    openai_api_key: str = Field(..., alias="OPENAI_API_KEY")
    openai_base_url: str = Field(default="https://api.openai.com/v1", alias="OPENAI_BASE_URL")
    openai_model: str = Field(default="gpt-3.5-turbo", alias="OPENAI_MODEL")
    openai_timeout: int = Field(default=20, alias="OPENAI_TIMEOUT")
    openai_verify_ssl: bool = Field(default=True, alias="OPENAI_VERIFY_SSL")

    # Processing
    job_timeout_seconds: float = Field(default=30.0, alias="JOB_TIMEOUT_SECONDS")
    cleanup_interval_seconds: float = Field(default=3600.0, alias="CLEANUP_INTERVAL_SECONDS")
    job_retention_seconds: float = Field(default=86400.0, alias="JOB_RETENTION_SECONDS")
    subscriber_queue_size: int = Field(default=100, alias="SUBSCRIBER_QUEUE_SIZE")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v_upper

    @field_validator("port")
    @classmethod
    def validate_port(cls, v):
        """Validate port is in valid range."""
        if not (1 <= v <= 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("job_timeout_seconds", "cleanup_interval_seconds", "job_retention_seconds")
    @classmethod
    def validate_positive_duration(cls, v):
        """Durations must be strictly positive."""
        if v <= 0:
            raise ValueError("Duration must be greater than zero")
        return v

    @field_validator("subscriber_queue_size")
    @classmethod
    def validate_queue_size(cls, v):
        if v < 1:
            raise ValueError("Subscriber queue size must be at least 1")
        return v

    @field_validator("firefly_url", "openai_base_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    def static_path(self) -> Optional[Path]:
        """Return the UI directory if UI hosting is enabled and the directory exists."""
        if not self.enable_ui:
            return None
        path = Path(self.static_dir)
        return path if path.is_dir() else None


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
