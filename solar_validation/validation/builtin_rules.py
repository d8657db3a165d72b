"""
Built-in validation rule catalog.

Generic format, business, integrity and security rules plus solar-specific
sanity checks. Thresholds are broad defaults; deployments with stricter
domain limits register their own rules alongside or instead of these.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

from solar_validation.utils.date_utils import parse_timestamp
from solar_validation.utils.record_utils import get_path
from solar_validation.validation.types import (
    FunctionRule,
    RuleCategory,
    RuleOutcome,
    Severity,
    ValidationContext,
    rule,
)


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")
PHONE_SEPARATORS = re.compile(r"[\s\-()]")

SCRIPT_PATTERNS = [
    re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"<iframe[^>]*>.*?</iframe>", re.IGNORECASE | re.DOTALL),
]
HTML_TAG_PATTERN = re.compile(r"<[^>]*>")
MAX_HTML_TAGS = 10

REFERENCE_FIELDS = ("homeowner_id", "installer_id", "supplier_id", "rfq_id", "quote_id")
FREE_TEXT_FIELDS = ("description", "notes", "comments", "message")
PRODUCTION_FIELDS = ("dc_power", "ac_power", "energy")


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


# =============================================================================
# Business rules
# =============================================================================


@rule(
    "positive_number",
    name="Positive Number Validation",
    description="Validates that numeric values are positive",
    category=RuleCategory.BUSINESS,
)
def positive_number(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    if not _is_number(value) or value > 0:
        return RuleOutcome.ok()
    return RuleOutcome.fail("Value must be positive", suggested_fix=abs(value))


@rule(
    "percentage_range",
    name="Percentage Range Validation",
    description="Validates percentage values are between 0-100",
    category=RuleCategory.BUSINESS,
)
def percentage_range(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    if not _is_number(value) or 0 <= value <= 100:
        return RuleOutcome.ok()
    return RuleOutcome.fail(
        "Percentage must be between 0 and 100",
        suggested_fix=max(0, min(100, value)),
    )


@rule(
    "coordinate_range",
    name="Geographic Coordinate Validation",
    description="Validates latitude and longitude ranges",
    category=RuleCategory.BUSINESS,
)
def coordinate_range(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    coords = get_path(record, "coordinates") or get_path(record, "address.coordinates")
    if not isinstance(coords, Mapping):
        return RuleOutcome.ok()

    latitude = coords.get("latitude")
    longitude = coords.get("longitude")
    if _is_number(latitude) and not -90 <= latitude <= 90:
        return RuleOutcome.fail("Latitude must be between -90 and 90")
    if _is_number(longitude) and not -180 <= longitude <= 180:
        return RuleOutcome.fail("Longitude must be between -180 and 180")
    return RuleOutcome.ok()


# =============================================================================
# Format rules
# =============================================================================


@rule(
    "email_format",
    name="Email Format Validation",
    description="Validates email format",
    field="email",
    category=RuleCategory.FORMAT,
)
def email_format(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    if not isinstance(value, str) or EMAIL_PATTERN.match(value):
        return RuleOutcome.ok()
    return RuleOutcome.fail("Invalid email format")


@rule(
    "phone_format",
    name="Phone Format Validation",
    description="Validates phone number format",
    field="phone_number",
    severity=Severity.WARNING,
    category=RuleCategory.FORMAT,
)
def phone_format(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    if not isinstance(value, str):
        return RuleOutcome.ok()
    normalized = PHONE_SEPARATORS.sub("", value)
    if PHONE_PATTERN.match(normalized):
        return RuleOutcome.ok()
    return RuleOutcome.fail("Invalid phone number format")


@rule(
    "url_format",
    name="URL Format Validation",
    description="Validates URL format",
    field="url",
    severity=Severity.WARNING,
    category=RuleCategory.FORMAT,
)
def url_format(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    if not isinstance(value, str):
        return RuleOutcome.ok()
    parsed = urlparse(value)
    if parsed.scheme and parsed.netloc:
        return RuleOutcome.ok()
    return RuleOutcome.fail("Invalid URL format")


# =============================================================================
# Solar rules
# =============================================================================


@rule(
    "solar_capacity_range",
    name="Solar System Capacity Range",
    description="Validates solar system capacity is within reasonable range",
    field="total_capacity",
    severity=Severity.WARNING,
    category=RuleCategory.BUSINESS,
)
def solar_capacity_range(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    if not _is_number(value) or 0.1 <= value <= 10000:
        return RuleOutcome.ok()
    return RuleOutcome.fail("Solar capacity should be between 0.1 kW and 10,000 kW")


@rule(
    "solar_efficiency_range",
    name="Solar Panel Efficiency Range",
    description="Validates solar panel efficiency percentage",
    field="efficiency",
    severity=Severity.WARNING,
    category=RuleCategory.BUSINESS,
)
def solar_efficiency_range(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    if not _is_number(value) or 5 <= value <= 50:
        return RuleOutcome.ok()
    return RuleOutcome.fail("Solar panel efficiency should be between 5% and 50%")


@rule(
    "energy_production_positive",
    name="Energy Production Positive Values",
    description="Validates energy production values are non-negative",
    category=RuleCategory.BUSINESS,
)
def energy_production_positive(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    production = get_path(record, "production")
    if not isinstance(production, Mapping):
        return RuleOutcome.ok()

    for name in PRODUCTION_FIELDS:
        reading = production.get(name)
        if _is_number(reading) and reading < 0:
            return RuleOutcome.fail(f"Energy production field '{name}' cannot be negative")
    return RuleOutcome.ok()


@rule(
    "solar_irradiance_range",
    name="Solar Irradiance Range Validation",
    description="Validates solar irradiance values are within physical limits",
    severity=Severity.WARNING,
    category=RuleCategory.BUSINESS,
)
def solar_irradiance_range(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    ghi = get_path(record, "irradiance.ghi")
    if not _is_number(ghi) or 0 <= ghi <= 1500:
        return RuleOutcome.ok()
    return RuleOutcome.fail("Global Horizontal Irradiance should be between 0 and 1500 W/m2")


@rule(
    "power_rating_consistency",
    name="Power Rating Consistency",
    description="Validates consistency between panel count, power rating, and total capacity",
    severity=Severity.WARNING,
    category=RuleCategory.INTEGRITY,
)
def power_rating_consistency(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    design = get_path(record, "system_design")
    if not isinstance(design, Mapping):
        return RuleOutcome.ok()

    total_capacity = design.get("total_capacity")
    panels = design.get("panels")
    if not total_capacity or not design.get("panel_count") or not panels:
        return RuleOutcome.ok()

    calculated = sum(
        (panel.get("wattage") or 0) * (panel.get("quantity") or 0)
        for panel in panels
        if isinstance(panel, Mapping)
    ) / 1000
    if abs(calculated - total_capacity) / total_capacity <= 0.1:
        return RuleOutcome.ok()

    return RuleOutcome.fail(
        f"Total capacity ({total_capacity} kW) doesn't match calculated capacity "
        f"from panels ({calculated:.2f} kW)",
        suggested_fix=round(calculated, 3),
    )


# =============================================================================
# Integrity rules
# =============================================================================


@rule(
    "unique_identifier",
    name="Unique Identifier Validation",
    description="Validates unique identifiers are present and properly formatted",
    field="id",
    category=RuleCategory.INTEGRITY,
)
def unique_identifier(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    if isinstance(value, str) and value.strip():
        return RuleOutcome.ok()
    return RuleOutcome.fail("Record must have a valid unique identifier")


@rule(
    "reference_integrity",
    name="Reference Integrity Validation",
    description="Validates foreign key reference formats",
    severity=Severity.WARNING,
    category=RuleCategory.INTEGRITY,
)
def reference_integrity(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    if not isinstance(record, Mapping):
        return RuleOutcome.ok()
    for name in REFERENCE_FIELDS:
        reference = record.get(name)
        if reference and not isinstance(reference, str):
            return RuleOutcome.fail(f"Reference field '{name}' must be a string")
    return RuleOutcome.ok()


@rule(
    "timestamp_consistency",
    name="Timestamp Consistency Validation",
    description="Validates updated_at is not before created_at",
    severity=Severity.WARNING,
    category=RuleCategory.INTEGRITY,
)
def timestamp_consistency(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    created = parse_timestamp(get_path(record, "created_at"))
    updated = parse_timestamp(get_path(record, "updated_at"))
    if created is None or updated is None or updated >= created:
        return RuleOutcome.ok()
    return RuleOutcome.fail("updated_at timestamp cannot be before created_at")


# =============================================================================
# Security rules
# =============================================================================


def _find_script(value: Any, prefix: str = "") -> str | None:
    """Return the dotted path of the first string carrying script content."""
    if isinstance(value, str):
        return prefix if any(p.search(value) for p in SCRIPT_PATTERNS) else None
    if isinstance(value, Mapping):
        items = ((str(k), v) for k, v in value.items())
    elif isinstance(value, list | tuple):
        items = ((str(i), v) for i, v in enumerate(value))
    else:
        return None

    for key, child in items:
        found = _find_script(child, f"{prefix}.{key}" if prefix else key)
        if found is not None:
            return found
    return None


@rule(
    "no_script_injection",
    name="Script Injection Prevention",
    description="Prevents script injection in text fields",
    category=RuleCategory.SECURITY,
)
def no_script_injection(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    dangerous = _find_script(record)
    if dangerous is None:
        return RuleOutcome.ok()
    return RuleOutcome.fail(
        f"Potentially dangerous script content detected in field: {dangerous or '<root>'}"
    )


@rule(
    "sanitized_input",
    name="Input Sanitization Validation",
    description="Validates free-text input has been sanitized",
    severity=Severity.WARNING,
    category=RuleCategory.SECURITY,
)
def sanitized_input(value: Any, record: Any, context: ValidationContext) -> RuleOutcome:
    if not isinstance(record, Mapping):
        return RuleOutcome.ok()
    for name in FREE_TEXT_FIELDS:
        text = record.get(name)
        if isinstance(text, str) and len(HTML_TAG_PATTERN.findall(text)) > MAX_HTML_TAGS:
            return RuleOutcome.fail(
                f"Field '{name}' contains excessive HTML tags, may need sanitization"
            )
    return RuleOutcome.ok()


BUILTIN_RULES: tuple[FunctionRule, ...] = (
    positive_number,
    percentage_range,
    coordinate_range,
    email_format,
    phone_format,
    url_format,
    solar_capacity_range,
    solar_efficiency_range,
    energy_production_positive,
    solar_irradiance_range,
    power_rating_consistency,
    unique_identifier,
    reference_integrity,
    timestamp_consistency,
    no_script_injection,
    sanitized_input,
)


def builtin_rules() -> list[FunctionRule]:
    """Get the built-in rule catalog in registration order."""
    return list(BUILTIN_RULES)
