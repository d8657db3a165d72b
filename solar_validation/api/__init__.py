"""
API module for the solar validation service.

Provides FastAPI REST endpoints for:
- Record validation
- Schema and cross-validation rule listings
- Health checks and Prometheus metrics
"""

from solar_validation.api.app import create_app, error_response
from solar_validation.api.dependencies import (
    get_orchestrator,
    request_metadata,
    validation_dependency,
)
from solar_validation.api.models import (
    ErrorResponse,
    HealthResponse,
    SchemaListResponse,
    ValidateRequest,
    ValidateResponse,
)


__all__ = [
    # App
    "create_app",
    "error_response",
    # Dependencies
    "get_orchestrator",
    "request_metadata",
    "validation_dependency",
    # Models
    "ErrorResponse",
    "HealthResponse",
    "SchemaListResponse",
    "ValidateRequest",
    "ValidateResponse",
]
