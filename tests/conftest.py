"""
Pytest Configuration and Shared Fixtures.

Provides fresh registries, orchestrators and sample solar records for
every test, and resets the cached settings between tests.
"""

from collections.abc import Generator
from typing import Any

import pytest

from solar_validation.config.settings import Settings, get_settings
from solar_validation.schemas.registry import SchemaRegistry
from solar_validation.validation.orchestrator import ValidationOrchestrator
from solar_validation.validation.registry import RuleRegistry


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Clear the cached settings before and after each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Default settings instance."""
    return Settings()


# =============================================================================
# Registries and orchestrator
# =============================================================================


@pytest.fixture
def rule_registry() -> RuleRegistry:
    """Empty rule registry."""
    return RuleRegistry()


@pytest.fixture
def builtin_registry() -> RuleRegistry:
    """Rule registry preloaded with the built-in catalog."""
    return RuleRegistry.with_builtin_rules()


@pytest.fixture
def schema_registry() -> SchemaRegistry:
    """Schema registry preloaded with the built-in schemas."""
    return SchemaRegistry.with_builtin_schemas()


@pytest.fixture
def orchestrator(settings: Settings) -> ValidationOrchestrator:
    """Orchestrator with its own registries, cache and metrics."""
    return ValidationOrchestrator(settings=settings)


# =============================================================================
# Sample records
# =============================================================================


@pytest.fixture
def panel_spec() -> dict[str, Any]:
    """Valid solar panel datasheet."""
    return {
        "manufacturer": "SunPower",
        "model": "Maxeon 6",
        "technology": "monocrystalline",
        "nominal_power": 440,
        "efficiency": 22.8,
        "stc": {
            "power_output": 440,
            "voltage": 42.5,
            "current": 10.4,
            "open_circuit_voltage": 50.2,
            "short_circuit_current": 11.0,
        },
    }


@pytest.fixture
def inverter_spec() -> dict[str, Any]:
    """Valid string inverter datasheet."""
    return {
        "manufacturer": "SMA",
        "model": "Sunny Boy 7.7",
        "technology": "string",
        "phase_configuration": "single_phase",
        "ac_output": {
            "nominal_power": 7680,
            "max_power": 7680,
            "voltage": 240,
            "frequency": 60,
        },
        "dc_input": {
            "max_power": 11000,
            "voltage_range": {"min": 100, "max": 600},
        },
        "peak_efficiency": 97.5,
    }


@pytest.fixture
def system_cost() -> dict[str, Any]:
    """Valid residential cost breakdown."""
    return {
        "system_size": 8.0,
        "system_type": "residential",
        "equipment_cost": 15000,
        "installation_cost": 9000,
        "total_cost": 24000,
        "line_items": [
            {"description": "Panels and inverter", "amount": 15000},
            {"description": "Labor and permits", "amount": 9000},
        ],
    }


@pytest.fixture
def contact_form() -> dict[str, Any]:
    """Valid website contact form."""
    return {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "subject": "Rooftop quote",
        "message": "I would like a quote for an 8 kW rooftop system.",
    }
