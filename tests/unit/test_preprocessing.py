"""
Unit tests for context-specific request preprocessing.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from solar_validation.exceptions import AuthenticationRequiredError
from solar_validation.validation.models import ValidationRequest
from solar_validation.validation.preprocessing import (
    RequestPreprocessor,
    has_credentials,
    sanitize_value,
)


def _request(context: str, payload: Any = None, metadata: dict[str, Any] | None = None) -> ValidationRequest:
    return ValidationRequest.create(payload, context=context, category="real_time", metadata=metadata)


class TestSanitizeValue:
    """Tests for sanitize_value."""

    def test_strips_and_removes_brackets(self) -> None:
        assert sanitize_value("  <b>Jane</b>  ") == "bJane/b"

    def test_nested(self) -> None:
        value = {"name": " Jane ", "notes": [" <x> ", 5], "size": 8.2}
        assert sanitize_value(value) == {"name": "Jane", "notes": ["x", 5], "size": 8.2}

    def test_non_strings_untouched(self) -> None:
        assert sanitize_value(None) is None
        assert sanitize_value(42) == 42


class TestHasCredentials:
    """Tests for has_credentials."""

    @pytest.mark.parametrize("key", ["api_key", "apiKey", "bearer_token", "bearerToken"])
    def test_recognised_keys(self, key: str) -> None:
        assert has_credentials({key: "secret"})

    def test_empty_value_is_not_a_credential(self) -> None:
        assert not has_credentials({"api_key": ""})

    def test_missing(self) -> None:
        assert not has_credentials({"user_agent": "curl"})


class TestRequestPreprocessor:
    """Tests for RequestPreprocessor.apply."""

    def test_user_input_is_sanitized(self) -> None:
        request = _request("user_input", {"name": " <Jane> "})

        outcome = RequestPreprocessor().apply(request)

        assert outcome.sanitized
        assert request.data.primary == {"name": "Jane"}

    def test_api_request_requires_credentials(self) -> None:
        with pytest.raises(AuthenticationRequiredError) as exc:
            RequestPreprocessor().apply(_request("api_request", {}))
        assert exc.value.code == "AUTHENTICATION_REQUIRED"

    def test_api_request_with_credentials(self) -> None:
        outcome = RequestPreprocessor().apply(_request("api_request", {}, {"apiKey": "k-123"}))
        assert outcome.warnings == []

    def test_stale_real_time_data(self) -> None:
        old = (datetime.now(UTC) - timedelta(minutes=10)).isoformat()
        request = _request("real_time_monitoring", {}, {"timestamp": old})

        outcome = RequestPreprocessor(freshness_window_seconds=300).apply(request)

        assert outcome.stale
        assert request.data.metadata["stale"] is True
        warning = outcome.warnings[0]
        assert warning.code == "STALE_DATA"
        assert warning.path == ("metadata", "timestamp")

    def test_fresh_real_time_data(self) -> None:
        now = datetime.now(UTC).isoformat()
        request = _request("real_time_monitoring", {}, {"timestamp": now})

        outcome = RequestPreprocessor().apply(request)

        assert not outcome.stale
        assert "stale" not in request.data.metadata

    def test_epoch_milliseconds_timestamp(self) -> None:
        old_ms = (datetime.now(UTC) - timedelta(hours=1)).timestamp() * 1000
        request = _request("real_time_monitoring", {}, {"timestamp": old_ms})

        assert RequestPreprocessor().apply(request).stale

    def test_unparseable_timestamp_is_not_stale(self) -> None:
        request = _request("real_time_monitoring", {}, {"timestamp": "yesterday"})
        assert not RequestPreprocessor().apply(request).stale

    def test_batch_disables_caching(self) -> None:
        request = _request("batch_processing", {})

        outcome = RequestPreprocessor().apply(request)

        assert outcome.caching_enabled is False
        assert request.config.enable_caching is False

    def test_other_contexts_untouched(self) -> None:
        request = _request("data_migration", {"name": " <Jane> "})

        outcome = RequestPreprocessor().apply(request)

        assert outcome.caching_enabled
        assert request.data.primary == {"name": " <Jane> "}
