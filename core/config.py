"""
Centralized configuration management.
All environment variables and settings are defined here.
"""
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="Transaction Tagger", alias="APP_NAME")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000)
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Category suggestion service (OpenAI-compatible chat completions)
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    openai_gateway_url: str = Field(
        default="https://api.openai.com/v1/chat/completions",
        alias="OPENAI_GATEWAY_URL"
    )
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    openai_timeout: Optional[int] = Field(default=None, alias="OPENAI_TIMEOUT")
    openai_verify_ssl: bool = Field(default=True, alias="OPENAI_VERIFY_SSL")
    openai_temperature: float = Field(default=0.0, ge=0.0, le=2.0, alias="OPENAI_TEMPERATURE")

    # Uploads
    max_upload_mb: int = Field(default=10, alias="MAX_UPLOAD_MB")

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

    @field_validator("openai_timeout")
    @classmethod
    def validate_timeout(cls, v):
        """Timeout is optional, but must be positive when set."""
        if v is not None and v <= 0:
            raise ValueError("OpenAI timeout must be a positive number of seconds")
        return v

    @field_validator("max_upload_mb")
    @classmethod
    def validate_upload_size(cls, v):
        """Validate upload size limit."""
        if v < 1:
            raise ValueError("Max upload size must be at least 1 MB")
        return v

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


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
