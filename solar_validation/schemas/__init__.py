"""
Schema module for solar record validation.

Provides the instance-based schema registry and the built-in Pydantic
models for equipment, financial, production, real-time and customer
records.
"""

from solar_validation.schemas.registry import SchemaDefinition, SchemaRegistry
from solar_validation.schemas.solar import (
    BUILTIN_SCHEMAS,
    BatterySpec,
    ContactForm,
    EnergyProduction,
    InverterSpec,
    SensorMeasurement,
    SolarPanelSpec,
    SolarSystemConfiguration,
    SystemCost,
)


__all__ = [
    "SchemaDefinition",
    "SchemaRegistry",
    "BUILTIN_SCHEMAS",
    "BatterySpec",
    "ContactForm",
    "EnergyProduction",
    "InverterSpec",
    "SensorMeasurement",
    "SolarPanelSpec",
    "SolarSystemConfiguration",
    "SystemCost",
]
