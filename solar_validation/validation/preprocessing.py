"""
Context-specific request preprocessing.

Runs before any validation stage and may rewrite the (already copied)
request: sanitising user input, enforcing API credentials, marking stale
real-time payloads and disabling caching for batch work.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from solar_validation.config import get_logger
from solar_validation.exceptions import AuthenticationRequiredError
from solar_validation.utils.date_utils import age_seconds
from solar_validation.validation.models import ValidationIssue, ValidationRequest
from solar_validation.validation.types import RequestContext, Severity


logger = get_logger(__name__)

CREDENTIAL_KEYS = ("api_key", "apiKey", "bearer_token", "bearerToken")
ANGLE_BRACKETS = str.maketrans("", "", "<>")


@dataclass(slots=True)
class PreprocessOutcome:
    """What preprocessing changed or observed."""

    caching_enabled: bool = True
    stale: bool = False
    sanitized: bool = False
    warnings: list[ValidationIssue] = field(default_factory=list)


def sanitize_value(value: Any) -> Any:
    """
    Recursively trim strings and strip angle brackets.

    Dicts and lists are rebuilt; other values pass through unchanged.
    """
    if isinstance(value, str):
        return value.strip().translate(ANGLE_BRACKETS)
    if isinstance(value, dict):
        return {key: sanitize_value(child) for key, child in value.items()}
    if isinstance(value, list):
        return [sanitize_value(item) for item in value]
    return value


def has_credentials(metadata: dict[str, Any]) -> bool:
    """Check that request metadata carries an API key or bearer token."""
    return any(metadata.get(key) for key in CREDENTIAL_KEYS)


class RequestPreprocessor:
    """
    Applies context-specific preprocessing to a copied request.

    Example:
        preprocessor = RequestPreprocessor(freshness_window_seconds=300)
        outcome = preprocessor.apply(request)
    """

    def __init__(self, freshness_window_seconds: float = 300) -> None:
        """
        Initialize the preprocessor.

        Args:
            freshness_window_seconds: Age above which real-time data is stale.
        """
        self.freshness_window_seconds = freshness_window_seconds
        self._handlers: dict[RequestContext, Callable[[ValidationRequest, PreprocessOutcome], None]] = {
            RequestContext.USER_INPUT: self._sanitize_user_input,
            RequestContext.API_REQUEST: self._require_credentials,
            RequestContext.REAL_TIME_MONITORING: self._mark_staleness,
            RequestContext.BATCH_PROCESSING: self._disable_caching,
        }

    def apply(self, request: ValidationRequest) -> PreprocessOutcome:
        """
        Preprocess a request in place.

        The caller must pass a copy; the payload may be replaced.

        Args:
            request: Request to preprocess.

        Returns:
            PreprocessOutcome describing the changes.

        Raises:
            AuthenticationRequiredError: For an api_request without credentials.
        """
        outcome = PreprocessOutcome(caching_enabled=request.config.enable_caching)
        handler = self._handlers.get(request.context)
        if handler is not None:
            handler(request, outcome)
        return outcome

    def is_stale(self, request: ValidationRequest) -> bool:
        """Check whether a real-time request is older than the freshness window."""
        if request.context != RequestContext.REAL_TIME_MONITORING:
            return False
        age = age_seconds(request.data.metadata.get("timestamp"))
        return age is not None and age > self.freshness_window_seconds

    def _sanitize_user_input(self, request: ValidationRequest, outcome: PreprocessOutcome) -> None:
        request.data.primary = sanitize_value(request.data.primary)
        outcome.sanitized = True

    def _require_credentials(self, request: ValidationRequest, outcome: PreprocessOutcome) -> None:
        if not has_credentials(request.data.metadata):
            logger.warning("api_request_unauthenticated", request_id=request.request_id)
            raise AuthenticationRequiredError()

    def _mark_staleness(self, request: ValidationRequest, outcome: PreprocessOutcome) -> None:
        if not self.is_stale(request):
            return

        age = age_seconds(request.data.metadata.get("timestamp")) or 0.0
        request.data.metadata["stale"] = True
        outcome.stale = True
        outcome.warnings.append(
            ValidationIssue(
                path=("metadata", "timestamp"),
                message=(
                    f"Real-time data is {age:.0f}s old, older than the "
                    f"{self.freshness_window_seconds:.0f}s freshness window"
                ),
                code="STALE_DATA",
                severity=Severity.WARNING,
            )
        )
        logger.info("real_time_data_stale", request_id=request.request_id, age_seconds=round(age, 1))

    def _disable_caching(self, request: ValidationRequest, outcome: PreprocessOutcome) -> None:
        request.config.enable_caching = False
        outcome.caching_enabled = False
