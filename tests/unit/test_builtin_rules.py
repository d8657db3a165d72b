"""
Unit tests for the built-in rule catalog.
"""

from typing import Any

import pytest

from solar_validation.validation.builtin_rules import (
    BUILTIN_RULES,
    builtin_rules,
    coordinate_range,
    email_format,
    energy_production_positive,
    no_script_injection,
    percentage_range,
    phone_format,
    positive_number,
    power_rating_consistency,
    reference_integrity,
    sanitized_input,
    solar_capacity_range,
    solar_efficiency_range,
    solar_irradiance_range,
    timestamp_consistency,
    unique_identifier,
    url_format,
)
from solar_validation.validation.types import (
    FunctionRule,
    RuleCategory,
    RuleOutcome,
    Severity,
    ValidationContext,
)


CONTEXT = ValidationContext(collection="system_config")


def check(rule: FunctionRule, value: Any = None, record: Any = None) -> RuleOutcome:
    return RuleOutcome.coerce(rule.validate(value, record if record is not None else {}, CONTEXT))


class TestCatalog:
    """Tests for the catalog as a whole."""

    def test_catalog_order_and_uniqueness(self) -> None:
        ids = [r.rule_id for r in builtin_rules()]

        assert len(ids) == 16
        assert len(set(ids)) == 16
        assert ids[0] == "positive_number"
        assert ids[-1] == "sanitized_input"

    def test_catalog_is_a_copy(self) -> None:
        rules = builtin_rules()
        rules.clear()
        assert len(BUILTIN_RULES) == 16

    def test_metadata(self) -> None:
        assert email_format.field == "email"
        assert email_format.category == RuleCategory.FORMAT
        assert no_script_injection.category == RuleCategory.SECURITY
        assert power_rating_consistency.severity == Severity.WARNING
        assert positive_number.name == "Positive Number Validation"
        assert not any(r.is_async for r in BUILTIN_RULES)


class TestBusinessRules:
    """Tests for generic business rules."""

    @pytest.mark.parametrize("value", [1, 0.5, "text", None, True])
    def test_positive_number_passes(self, value: Any) -> None:
        assert check(positive_number, value).passed

    def test_positive_number_suggests_abs(self) -> None:
        outcome = check(positive_number, -7.5)

        assert not outcome.passed
        assert outcome.suggested_fix == 7.5

    def test_zero_is_not_positive(self) -> None:
        outcome = check(positive_number, 0)
        assert not outcome.passed
        assert outcome.suggested_fix == 0

    @pytest.mark.parametrize(("value", "fix"), [(-5, 0), (120, 100)])
    def test_percentage_clamped(self, value: int, fix: int) -> None:
        outcome = check(percentage_range, value)

        assert not outcome.passed
        assert outcome.suggested_fix == fix

    def test_percentage_in_range(self) -> None:
        assert check(percentage_range, 42).passed

    def test_coordinates(self) -> None:
        assert check(coordinate_range, record={"coordinates": {"latitude": 37.7, "longitude": -122.4}}).passed
        assert not check(coordinate_range, record={"coordinates": {"latitude": 95, "longitude": 0}}).passed
        assert not check(
            coordinate_range, record={"address": {"coordinates": {"latitude": 0, "longitude": 200}}}
        ).passed
        assert check(coordinate_range, record={}).passed


class TestFormatRules:
    """Tests for format rules."""

    def test_email(self) -> None:
        assert check(email_format, "ops@solar.example").passed
        assert not check(email_format, "not-an-email").passed
        assert check(email_format, None).passed

    @pytest.mark.parametrize("phone", ["+14155550100", "(415) 555-0100", "415-555-0100"])
    def test_phone_valid(self, phone: str) -> None:
        assert check(phone_format, phone).passed

    def test_phone_invalid(self) -> None:
        outcome = check(phone_format, "call me")
        assert not outcome.passed
        assert outcome.message == "Invalid phone number format"

    def test_url(self) -> None:
        assert check(url_format, "https://monitoring.example.com/site/1").passed
        assert not check(url_format, "monitoring.example.com").passed


class TestSolarRules:
    """Tests for solar-specific sanity checks."""

    def test_capacity_range(self) -> None:
        assert check(solar_capacity_range, 8.2).passed
        assert not check(solar_capacity_range, 0.05).passed
        assert not check(solar_capacity_range, 20000).passed

    def test_efficiency_range(self) -> None:
        assert check(solar_efficiency_range, 21.5).passed
        assert not check(solar_efficiency_range, 65).passed

    def test_negative_production(self) -> None:
        record = {"production": {"dc_power": 5.1, "ac_power": -0.2}}

        outcome = check(energy_production_positive, record=record)

        assert not outcome.passed
        assert "'ac_power'" in outcome.message

    def test_irradiance(self) -> None:
        assert check(solar_irradiance_range, record={"irradiance": {"ghi": 850}}).passed
        assert not check(solar_irradiance_range, record={"irradiance": {"ghi": 1800}}).passed

    def test_power_rating_consistent(self) -> None:
        record = {
            "system_design": {
                "total_capacity": 8.0,
                "panel_count": 20,
                "panels": [{"wattage": 400, "quantity": 20}],
            }
        }
        assert check(power_rating_consistency, record=record).passed

    def test_power_rating_inconsistent_suggests_capacity(self) -> None:
        record = {
            "system_design": {
                "total_capacity": 12.0,
                "panel_count": 20,
                "panels": [{"wattage": 400, "quantity": 20}],
            }
        }

        outcome = check(power_rating_consistency, record=record)

        assert not outcome.passed
        assert outcome.suggested_fix == 8.0


class TestIntegrityRules:
    """Tests for integrity rules."""

    def test_unique_identifier(self) -> None:
        assert check(unique_identifier, "sys-001").passed
        assert not check(unique_identifier, "   ").passed
        assert not check(unique_identifier, None).passed

    def test_reference_integrity(self) -> None:
        assert check(reference_integrity, record={"installer_id": "inst-9"}).passed
        assert not check(reference_integrity, record={"installer_id": 9}).passed

    def test_timestamp_consistency(self) -> None:
        ok = {"created_at": "2024-01-01T00:00:00Z", "updated_at": "2024-01-02T00:00:00Z"}
        bad = {"created_at": "2024-01-02T00:00:00Z", "updated_at": "2024-01-01T00:00:00Z"}

        assert check(timestamp_consistency, record=ok).passed
        assert not check(timestamp_consistency, record=bad).passed


class TestSecurityRules:
    """Tests for security rules."""

    def test_script_injection_reports_path(self) -> None:
        record = {"site": {"notes": ["ok", "<script>alert(1)</script>"]}}

        outcome = check(no_script_injection, record=record)

        assert not outcome.passed
        assert outcome.message == "Potentially dangerous script content detected in field: site.notes.1"

    @pytest.mark.parametrize("text", ["javascript:void(0)", '<img onerror="x">', "<iframe src=x></iframe>"])
    def test_script_patterns(self, text: str) -> None:
        assert not check(no_script_injection, record={"description": text}).passed

    def test_clean_record(self) -> None:
        assert check(no_script_injection, record={"description": "South-facing roof"}).passed

    def test_sanitized_input(self) -> None:
        assert check(sanitized_input, record={"notes": "<b>bold</b>"}).passed
        assert not check(sanitized_input, record={"notes": "<p>" * 11}).passed
