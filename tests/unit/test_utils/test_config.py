"""Tests for configuration loading."""

import pytest

from src.config import AppConfig
from src.utils.errors import ConfigurationError


@pytest.mark.unit
def test_from_env_reads_values(monkeypatch):
    """Test environment variables map onto config fields."""
    monkeypatch.setenv("NODE_ENV", "production")
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.setenv("CORS_ORIGINS", "https://kejahunt.co.ke, http://localhost:3000")
    monkeypatch.setenv("DATASTORE_READ_RETRIES", "1")
    monkeypatch.setenv("PORT", "8080")

    config = AppConfig.from_env()

    assert config.jwt_secret == "s3cret"
    assert config.cors_origins == ["https://kejahunt.co.ke", "http://localhost:3000"]
    assert config.datastore_read_retries == 1
    assert config.port == 8080
    assert not config.is_development


@pytest.mark.unit
def test_secret_required_outside_development(monkeypatch):
    """Test a missing secret is a configuration error in production."""
    monkeypatch.setenv("NODE_ENV", "production")
    monkeypatch.delenv("JWT_SECRET", raising=False)

    with pytest.raises(ConfigurationError):
        AppConfig.from_env()


@pytest.mark.unit
def test_development_falls_back_to_dev_secret(monkeypatch):
    """Test development runs without a configured secret."""
    monkeypatch.setenv("NODE_ENV", "development")
    monkeypatch.delenv("JWT_SECRET", raising=False)

    config = AppConfig.from_env()

    assert config.is_development
    assert config.jwt_secret == "dev-only-secret"


@pytest.mark.unit
def test_invalid_number_is_configuration_error(monkeypatch):
    """Test malformed numeric settings are reported as configuration errors."""
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.setenv("DATASTORE_TIMEOUT_SECONDS", "soon")

    with pytest.raises(ConfigurationError):
        AppConfig.from_env()


@pytest.mark.unit
def test_from_env_reads_logging_settings(monkeypatch):
    """Test log level, format and helper settings are read with the rest of the config."""
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "Text")
    monkeypatch.setenv("LOG_MASK_SENSITIVE", "false")
    monkeypatch.setenv("LOG_CORRELATION_ID_HEADER", "X-Request-ID")
    monkeypatch.setenv("LOG_SLOW_OPERATION_THRESHOLD_MS", "250")

    config = AppConfig.from_env()

    assert config.log_level == "DEBUG"
    assert config.log_format == "text"
    assert config.log_mask_sensitive is False
    assert config.log_correlation_id_header == "X-Request-ID"
    assert config.log_slow_operation_threshold_ms == 250
