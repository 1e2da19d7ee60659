"""
Unit tests for configuration module.
"""
import pytest
from pydantic import ValidationError

from core.config import Settings, get_settings, reset_settings


def test_settings_defaults(monkeypatch):
    """Test default configuration values."""
    for var in ("PORT", "LOG_LEVEL", "OPENAI_MODEL", "OPENAI_TIMEOUT", "MAX_UPLOAD_MB"):
        monkeypatch.delenv(var, raising=False)

    settings = get_settings()
    assert settings.app_name == "Transaction Tagger"
    assert settings.host == "0.0.0.0"
    assert settings.port == 8000
    assert settings.log_level == "INFO"
    assert settings.openai_model == "gpt-4o-mini"
    assert settings.openai_api_key == ""
    assert settings.openai_timeout is None
    assert settings.openai_verify_ssl is True
    assert settings.max_upload_bytes == 10 * 1024 * 1024


def test_settings_from_environment(monkeypatch):
    """Test values are read from environment variables."""
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4.1")
    monkeypatch.setenv("OPENAI_TIMEOUT", "30")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = get_settings()
    assert settings.openai_api_key == "test-key"
    assert settings.openai_model == "gpt-4.1"
    assert settings.openai_timeout == 30
    assert settings.log_level == "DEBUG"


def test_settings_validation_port(monkeypatch):
    """Test port validation."""
    monkeypatch.setenv("PORT", "99999")

    reset_settings()
    with pytest.raises(ValidationError):
        get_settings()


def test_settings_validation_log_level(monkeypatch):
    """Test log level validation."""
    monkeypatch.setenv("LOG_LEVEL", "INVALID")

    reset_settings()
    with pytest.raises(ValidationError):
        get_settings()


def test_settings_validation_timeout():
    """A zero timeout is rejected; leaving it unset means no timeout."""
    with pytest.raises(ValidationError):
        Settings(openai_timeout=0)


def test_settings_singleton():
    """Test settings singleton behavior."""
    settings1 = get_settings()
    settings2 = get_settings()
    assert settings1 is settings2

    reset_settings()
    assert get_settings() is not settings1
