"""
Unit tests for Settings classes.

Tests cover:
- Section defaults and constraints
- Environment variable loading
- Production settings validation
- Settings caching behavior
"""

import pytest
from pydantic import ValidationError

from solar_validation.config.settings import (
    CacheSettings,
    Environment,
    LogFormat,
    LoggingSettings,
    Settings,
    ValidationSettings,
    get_settings,
)


class TestValidationSettings:
    """Tests for ValidationSettings class."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        settings = ValidationSettings()

        assert settings.default_timeout_ms == 30000
        assert settings.max_errors == 100
        assert settings.strict_unknown_cross_rules is False
        assert settings.freshness_window_seconds == 300
        assert settings.executor_concurrency == 1

    def test_env_prefix_loading(self, monkeypatch) -> None:
        """Test loading from environment variables with VALIDATION_ prefix."""
        monkeypatch.setenv("VALIDATION_MAX_ERRORS", "25")
        monkeypatch.setenv("VALIDATION_STRICT_UNKNOWN_CROSS_RULES", "true")

        settings = ValidationSettings()

        assert settings.max_errors == 25
        assert settings.strict_unknown_cross_rules is True

    def test_max_errors_constraints(self) -> None:
        """Test max_errors validation constraints (ge=1, le=1000)."""
        with pytest.raises(ValidationError):
            ValidationSettings(max_errors=0)

        with pytest.raises(ValidationError):
            ValidationSettings(max_errors=5000)


class TestCacheSettings:
    """Tests for CacheSettings class."""

    def test_default_values(self) -> None:
        settings = CacheSettings()

        assert settings.enabled is True
        assert settings.max_size == 1000
        assert settings.ttl_seconds == 3600

    def test_env_prefix_loading(self, monkeypatch) -> None:
        monkeypatch.setenv("CACHE_ENABLED", "false")
        monkeypatch.setenv("CACHE_MAX_SIZE", "50")

        settings = CacheSettings()

        assert settings.enabled is False
        assert settings.max_size == 50


class TestLoggingSettings:
    """Tests for LoggingSettings class."""

    def test_default_values(self) -> None:
        settings = LoggingSettings()

        assert settings.format == LogFormat.JSON
        assert settings.file_path is None
        assert settings.mask_secrets is True

    def test_file_path_creates_directory(self, tmp_path) -> None:
        log_file = tmp_path / "logs" / "validation.log"

        settings = LoggingSettings(file_path=str(log_file))

        assert settings.file_path == log_file
        assert log_file.parent.is_dir()


class TestSettings:
    """Tests for the aggregated Settings class."""

    def test_defaults(self) -> None:
        settings = Settings()

        assert settings.app_name == "solar-validation"
        assert settings.app_env == Environment.DEVELOPMENT
        assert settings.is_development
        assert not settings.is_production

    def test_production_rejects_debug(self) -> None:
        """Test that debug mode is rejected in production."""
        with pytest.raises(ValidationError) as exc:
            Settings(app_env=Environment.PRODUCTION, debug=True)
        assert "DEBUG must be False in production" in str(exc.value)

    def test_production_without_debug(self) -> None:
        settings = Settings(app_env=Environment.PRODUCTION, debug=False)
        assert settings.is_production

    def test_environment_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("APP_ENV", "testing")
        assert Settings().is_testing

    def test_nested_sections(self, monkeypatch) -> None:
        monkeypatch.setenv("METRICS_NAMESPACE", "pv")
        monkeypatch.setenv("API_PORT", "9000")

        settings = Settings()

        assert settings.monitoring.namespace == "pv"
        assert settings.api.port == 9000


class TestGetSettings:
    """Tests for get_settings caching."""

    def test_returns_cached_instance(self) -> None:
        assert get_settings() is get_settings()

    def test_cache_clear(self) -> None:
        first = get_settings()
        get_settings.cache_clear()
        assert get_settings() is not first
