"""
Unit tests for record, date and hash utilities.
"""

from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from solar_validation.utils.date_utils import age_seconds, parse_timestamp
from solar_validation.utils.hash_utils import (
    canonical_json,
    compute_sha256,
    generate_unique_id,
    stable_digest,
)
from solar_validation.utils.record_utils import count_fields, get_path, has_path, is_empty, to_float
from solar_validation.validation.types import Severity


SYSTEM = {
    "panels": [{"stc": {"voltage": 41.2}}, {"stc": {"voltage": 40.8}}],
    "inverter": {"dc_input": {"voltage_range": {"min": 100, "max": 600}}},
    "notes": None,
}


class TestRecordUtils:
    """Tests for record traversal helpers."""

    def test_get_path_nested(self) -> None:
        assert get_path(SYSTEM, "inverter.dc_input.voltage_range.max") == 600

    def test_get_path_list_index(self) -> None:
        assert get_path(SYSTEM, "panels.1.stc.voltage") == 40.8

    def test_get_path_missing(self) -> None:
        assert get_path(SYSTEM, "panels.5.stc.voltage") is None
        assert get_path(SYSTEM, "inverter.model", "unknown") == "unknown"
        assert get_path(SYSTEM, "panels.first") is None

    @pytest.mark.parametrize("path", [None, "", "*"])
    def test_get_path_whole_record(self, path: str | None) -> None:
        assert get_path(SYSTEM, path) is SYSTEM

    def test_has_path_distinguishes_none(self) -> None:
        assert has_path(SYSTEM, "notes")
        assert not has_path(SYSTEM, "owner")

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(5, 5.0), ("$1,250.50", 1250.5), (" 42 ", 42.0), ("n/a", None), (True, None), (None, None), ("", None)],
    )
    def test_to_float(self, value: object, expected: float | None) -> None:
        assert to_float(value) == expected

    @pytest.mark.parametrize(("value", "expected"), [(None, True), ("  ", True), ([], True), (0, False), ("x", False)])
    def test_is_empty(self, value: object, expected: bool) -> None:
        assert is_empty(value) is expected

    def test_count_fields(self) -> None:
        assert count_fields({"a": 1, "b": {"c": 2, "d": [{"e": 3}]}}) == 5
        assert count_fields("scalar") == 0


class TestDateUtils:
    """Tests for timestamp parsing."""

    def test_iso_with_z(self) -> None:
        assert parse_timestamp("2024-01-15T10:00:00Z") == datetime(2024, 1, 15, 10, tzinfo=UTC)

    def test_offset_converted_to_utc(self) -> None:
        parsed = parse_timestamp("2024-01-15T12:00:00+02:00")
        assert parsed == datetime(2024, 1, 15, 10, tzinfo=UTC)

    def test_naive_datetime_taken_as_utc(self) -> None:
        assert parse_timestamp(datetime(2024, 1, 15, 10)).tzinfo == UTC

    def test_aware_datetime(self) -> None:
        value = datetime(2024, 1, 15, 5, tzinfo=timezone(timedelta(hours=-5)))
        assert parse_timestamp(value) == datetime(2024, 1, 15, 10, tzinfo=UTC)

    def test_epoch_seconds_and_milliseconds(self) -> None:
        expected = datetime(2024, 1, 15, 10, tzinfo=UTC)
        seconds = expected.timestamp()

        assert parse_timestamp(seconds) == expected
        assert parse_timestamp(seconds * 1000) == expected

    @pytest.mark.parametrize("value", ["not a date", None, True, object()])
    def test_unparseable(self, value: object) -> None:
        assert parse_timestamp(value) is None

    def test_age_seconds(self) -> None:
        now = datetime(2024, 1, 15, 10, 5, tzinfo=UTC)
        assert age_seconds("2024-01-15T10:00:00Z", now=now) == 300.0
        assert age_seconds("garbage", now=now) is None


class TestHashUtils:
    """Tests for hashing helpers."""

    def test_compute_sha256(self) -> None:
        assert compute_sha256("abc") == compute_sha256(b"abc")
        assert len(compute_sha256("abc")) == 64

    def test_digest_ignores_key_order(self) -> None:
        assert stable_digest({"b": 1, "a": [1, 2]}) == stable_digest({"a": [1, 2], "b": 1})

    def test_digest_depends_on_list_order(self) -> None:
        assert stable_digest([1, 2]) != stable_digest([2, 1])

    def test_canonical_json_non_json_types(self) -> None:
        text = canonical_json(
            {
                "severity": Severity.WARNING,
                "when": datetime(2024, 1, 1, tzinfo=UTC),
                "cost": Decimal("10.50"),
                "tags": {"b", "a"},
            }
        )

        assert text == (
            '{"cost":"10.50","severity":"warning","tags":["a","b"],'
            '"when":"2024-01-01T00:00:00+00:00"}'
        )

    def test_generate_unique_id(self) -> None:
        identifier = generate_unique_id("req", length=16)

        assert identifier.startswith("req_")
        assert len(identifier) == 20
        assert generate_unique_id() != generate_unique_id()
