"""
Application settings using Pydantic Settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults for the solar record validation engine.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment enumeration."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output format enumeration."""

    JSON = "json"
    CONSOLE = "console"


class ValidationSettings(BaseSettings):
    """Validation pipeline configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="VALIDATION_",
        extra="ignore",
    )

    default_timeout_ms: Annotated[int, Field(ge=1, le=300000)] = Field(
        default=30000,
        description="Default whole-pipeline timeout in milliseconds",
    )
    max_errors: Annotated[int, Field(ge=1, le=1000)] = Field(
        default=100,
        description="Default maximum issues reported per schema",
    )
    strict_unknown_cross_rules: bool = Field(
        default=False,
        description="Fail cross-validation rule names that are not registered",
    )
    freshness_window_seconds: Annotated[int, Field(ge=1, le=86400)] = Field(
        default=300,
        description="Age after which real-time payloads are marked stale",
    )
    slow_validation_ms: Annotated[int, Field(ge=1, le=300000)] = Field(
        default=5000,
        description="Duration above which a performance recommendation is emitted",
    )
    executor_concurrency: Annotated[int, Field(ge=1, le=64)] = Field(
        default=1,
        description="Maximum rules run concurrently within one dependency tier",
    )
    advisory_schema_codes: list[str] = Field(
        default_factory=list,
        description="Schema error types reported as non-failing warnings (e.g. string_too_long)",
    )


class CacheSettings(BaseSettings):
    """Result cache configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        extra="ignore",
    )

    enabled: bool = Field(
        default=True,
        description="Allow requests to use the result cache",
    )
    max_size: Annotated[int, Field(ge=1, le=1_000_000)] = Field(
        default=1000,
        description="Maximum number of cached results",
    )
    ttl_seconds: Annotated[int, Field(ge=0, le=604800)] = Field(
        default=3600,
        description="Cached result lifetime in seconds (0 disables expiry)",
    )


class MonitoringSettings(BaseSettings):
    """Monitoring configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="METRICS_",
        extra="ignore",
    )

    prometheus_enabled: bool = Field(
        default=True,
        description="Enable Prometheus metrics",
    )
    namespace: str = Field(
        default="solar",
        description="Prefix for exported metric names",
    )


class APISettings(BaseSettings):
    """HTTP adapter configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: Annotated[int, Field(ge=1, le=65535)] = Field(
        default=8000,
        description="Bind port",
    )
    title: str = Field(
        default="Solar Validation API",
        description="OpenAPI title",
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        extra="ignore",
    )

    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    format: LogFormat = Field(
        default=LogFormat.JSON,
        description="Log output format",
    )
    file_path: Path | None = Field(
        default=None,
        description="Optional log file path (console only when unset)",
    )
    file_max_size_mb: Annotated[int, Field(ge=1, le=1000)] = Field(
        default=100,
        description="Maximum log file size in MB",
    )
    file_backup_count: Annotated[int, Field(ge=1, le=20)] = Field(
        default=5,
        description="Number of backup log files to keep",
    )
    include_caller: bool = Field(
        default=True,
        description="Include caller information in log entries",
    )
    mask_secrets: bool = Field(
        default=True,
        description="Redact credentials and contact details in log output",
    )

    @field_validator("file_path", mode="before")
    @classmethod
    def create_log_dir(cls, v: Any) -> Path | None:
        """Ensure log directory exists."""
        if v in (None, ""):
            return None
        path = Path(v) if isinstance(v, str) else v
        path.parent.mkdir(parents=True, exist_ok=True)
        return path


class Settings(BaseSettings):
    """
    Main application settings aggregating all configuration sections.

    Settings are loaded from environment variables with optional .env file support.
    Each section has its own prefix for environment variable naming.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Application metadata
    app_name: str = Field(
        default="solar-validation",
        description="Application name",
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version",
    )
    app_env: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # Component settings
    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    api: APISettings = Field(default_factory=APISettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate critical settings for production environment."""
        if self.app_env == Environment.PRODUCTION and self.debug:
            raise ValueError("DEBUG must be False in production")
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.app_env == Environment.TESTING


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
