"""
Built-in solar record schemas.

Pydantic models for the record shapes the platform validates most often:
equipment specifications, cost breakdowns, production reports, sensor
measurements, full system configurations and the public contact form.
Ranges follow the manufacturer datasheet envelopes used across the
industry (IEC 61215, UL 1741) and are deliberately generous.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from solar_validation.schemas.registry import SchemaDefinition


Name = Annotated[str, Field(min_length=1, max_length=100)]
NonNegative = Annotated[float, Field(ge=0)]


class _Record(BaseModel):
    """Base for solar record schemas."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


# =============================================================================
# Equipment
# =============================================================================


class StcRating(_Record):
    """Standard Test Conditions ratings."""

    power_output: float = Field(ge=50, le=700)
    voltage: float = Field(ge=20, le=60)
    current: float = Field(ge=1, le=15)
    open_circuit_voltage: float = Field(ge=25, le=70)
    short_circuit_current: float = Field(ge=1, le=16)


class PanelDimensions(_Record):
    length: float = Field(ge=1000, le=2500)
    width: float = Field(ge=500, le=1500)
    thickness: float = Field(ge=30, le=60)
    weight: float = Field(ge=15, le=35)


class SolarPanelSpec(_Record):
    """Photovoltaic module datasheet."""

    manufacturer: Name
    model: Name
    part_number: str | None = None
    technology: Literal[
        "monocrystalline",
        "polycrystalline",
        "thin_film_cdte",
        "thin_film_cigs",
        "perovskite",
        "bifacial",
    ]
    nominal_power: int = Field(ge=50, le=700)
    efficiency: float = Field(ge=10, le=30)
    stc: StcRating
    dimensions: PanelDimensions | None = None
    certifications: list[str] = Field(default_factory=list)
    country_of_origin: str | None = Field(default=None, max_length=50)

    @model_validator(mode="after")
    def check_rated_power(self) -> SolarPanelSpec:
        if abs(self.stc.power_output - self.nominal_power) > self.nominal_power * 0.05:
            raise ValueError("STC power output must be within 5% of nominal power")
        return self


class VoltageRange(_Record):
    min: float = Field(ge=50, le=500)
    max: float = Field(ge=500, le=1500)
    nominal: float | None = Field(default=None, ge=200, le=1000)


class DcInput(_Record):
    max_power: float = Field(ge=240, le=2_000_000)
    voltage_range: VoltageRange
    mppt_channels: int = Field(default=1, ge=1, le=12)


class AcOutput(_Record):
    nominal_power: float = Field(ge=240, le=2_000_000)
    max_power: float = Field(ge=240, le=2_000_000)
    voltage: Literal[120, 208, 240, 277, 480, 600]
    frequency: Literal[50, 60]
    power_factor: float = Field(default=1.0, ge=0.95, le=1.0)


class InverterSpec(_Record):
    """Inverter datasheet."""

    manufacturer: Name
    model: Name
    technology: Literal["string", "central", "micro", "power_optimizer", "hybrid"]
    phase_configuration: Literal["single_phase", "three_phase"]
    ac_output: AcOutput
    dc_input: DcInput
    peak_efficiency: float = Field(ge=94, le=100)

    @model_validator(mode="after")
    def check_power_envelope(self) -> InverterSpec:
        if self.ac_output.max_power < self.ac_output.nominal_power:
            raise ValueError("AC max power cannot be below nominal power")
        return self


class BatteryElectrical(_Record):
    nominal_voltage: float = Field(ge=12, le=1000)
    nominal_capacity: float = Field(ge=1, le=1000)
    usable_capacity: float = Field(ge=1, le=1000)
    round_trip_efficiency: float = Field(ge=70, le=100)
    depth_of_discharge: float = Field(ge=50, le=100)


class BatterySpec(_Record):
    """Battery storage datasheet."""

    manufacturer: Name
    model: Name
    technology: Literal["lithium_ion", "lithium_iron_phosphate", "lead_acid", "flow", "saltwater"]
    chemistry: str = Field(max_length=50)
    electrical: BatteryElectrical
    cycle_life: int = Field(ge=500, le=20000)
    warranty_years: int = Field(ge=5, le=20)

    @model_validator(mode="after")
    def check_usable_capacity(self) -> BatterySpec:
        if self.electrical.usable_capacity > self.electrical.nominal_capacity:
            raise ValueError("Usable capacity cannot exceed nominal capacity")
        return self


# =============================================================================
# Financial
# =============================================================================


class CostLineItem(_Record):
    description: str = Field(min_length=1, max_length=200)
    amount: NonNegative


class SystemCost(_Record):
    """Installed system cost breakdown."""

    system_size: float = Field(ge=1, le=2000)
    system_type: Literal["residential", "commercial", "utility"]
    equipment_cost: NonNegative
    installation_cost: NonNegative
    total_cost: float = Field(gt=0)
    line_items: list[CostLineItem] = Field(default_factory=list)
    currency: str = Field(default="USD", min_length=3, max_length=3)


# =============================================================================
# Production and real-time data
# =============================================================================


class MeasurementPeriod(_Record):
    start_date: datetime
    end_date: datetime
    duration: Literal["real_time", "hourly", "daily", "monthly", "annual"]

    @model_validator(mode="after")
    def check_order(self) -> MeasurementPeriod:
        if self.end_date <= self.start_date:
            raise ValueError("Measurement period end must be after start")
        return self


class EnergyProduction(_Record):
    """Production report for one measurement period."""

    system_id: str = Field(min_length=1, max_length=50)
    measurement_period: MeasurementPeriod
    dc_power: float = Field(ge=0, le=2_000_000)
    ac_power: float = Field(ge=0, le=2_000_000)
    ac_energy: float = Field(ge=0, le=50000)
    inverter_efficiency: float = Field(ge=80, le=100)
    performance_ratio: float | None = Field(default=None, ge=0.3, le=1.2)

    @model_validator(mode="after")
    def check_conversion_ratio(self) -> EnergyProduction:
        if self.dc_power > 100 and self.ac_power > 100:
            ratio = self.ac_power / self.dc_power
            if not 0.8 <= ratio <= 1.0:
                raise ValueError("AC/DC power ratio must be between 0.8 and 1.0")
        return self


class PhaseReading(_Record):
    phase: Literal["L1", "L2", "L3"]
    power: float = Field(ge=0, le=1_000_000)
    voltage: float = Field(ge=0, le=600)
    current: float = Field(ge=0, le=5000)
    frequency: float = Field(ge=45, le=65)


class SensorMeasurement(_Record):
    """Single telemetry sample from a site sensor."""

    sensor_id: str = Field(min_length=1, max_length=50)
    timestamp: datetime
    measurement_type: Literal["instantaneous", "average", "cumulative"]
    sampling_period: int = Field(ge=1, le=3600)
    dc_power: float = Field(ge=0, le=2_000_000)
    ac_power: float = Field(ge=0, le=2_000_000)
    phases: list[PhaseReading] = Field(min_length=1, max_length=3)
    irradiance: float | None = Field(default=None, ge=0, le=1500)
    module_temperature: float | None = Field(default=None, ge=-40, le=100)


# =============================================================================
# System configuration
# =============================================================================


class SystemComponents(_Record):
    panels: list[SolarPanelSpec] = Field(min_length=1)
    inverters: list[InverterSpec] = Field(min_length=1)
    batteries: list[BatterySpec] = Field(default_factory=list)


class SolarSystemConfiguration(_Record):
    """Complete system design."""

    system_id: str = Field(min_length=1, max_length=50)
    system_name: Name
    system_type: Literal["residential", "commercial", "utility", "community"]
    application_class: Literal["grid_tied", "off_grid", "hybrid", "battery_backup"]
    components: SystemComponents
    total_panels: int = Field(ge=1, le=100_000)
    panels_per_string: int = Field(ge=1, le=30)
    first_year_production: float | None = Field(default=None, ge=1000, le=10_000_000)

    @model_validator(mode="after")
    def check_dc_ac_ratio(self) -> SolarSystemConfiguration:
        dc_watts = self.components.panels[0].nominal_power * self.total_panels
        ac_watts = sum(inv.ac_output.nominal_power for inv in self.components.inverters)
        if ac_watts and dc_watts / ac_watts > 1.5:
            raise ValueError("System DC/AC ratio exceeds maximum allowable oversizing")
        return self


# =============================================================================
# Customer
# =============================================================================


class ContactForm(_Record):
    """Public website contact form."""

    name: str = Field(min_length=1, max_length=100, pattern=r"^[a-zA-Z\s'-]+$")
    email: str = Field(max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str | None = Field(default=None, pattern=r"^\+?[1-9]\d{1,14}$")
    subject: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=10, max_length=2000)
    preferred_contact: Literal["email", "phone"] = "email"
    urgency: Literal["low", "medium", "high"] = "medium"


BUILTIN_SCHEMAS: tuple[SchemaDefinition, ...] = (
    SchemaDefinition("solar_panel_spec", SolarPanelSpec, "equipment", "Photovoltaic module datasheet"),
    SchemaDefinition("inverter_spec", InverterSpec, "equipment", "Inverter datasheet"),
    SchemaDefinition("battery_spec", BatterySpec, "equipment", "Battery storage datasheet"),
    SchemaDefinition("system_cost", SystemCost, "financial", "Installed system cost breakdown"),
    SchemaDefinition(
        "energy_production", EnergyProduction, "energy_production", "Production report"
    ),
    SchemaDefinition(
        "sensor_measurement", SensorMeasurement, "real_time", "Telemetry sample"
    ),
    SchemaDefinition(
        "solar_system_configuration",
        SolarSystemConfiguration,
        "system_config",
        "Complete system design",
    ),
    SchemaDefinition("contact_form", ContactForm, "customer", "Public contact form"),
)
