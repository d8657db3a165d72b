"""
Configuration module for the solar validation engine.

Provides centralized configuration management using Pydantic Settings,
environment variable loading, and structured logging setup.
"""

from solar_validation.config.logging_config import configure_logging, get_logger
from solar_validation.config.settings import Environment, Settings, get_settings


__all__ = [
    "Settings",
    "get_settings",
    "Environment",
    "configure_logging",
    "get_logger",
]
