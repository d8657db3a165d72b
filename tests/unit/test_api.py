"""
Unit tests for the validation API.

Tests cover:
- The validate endpoint and its error envelopes
- Header credentials for api_request validations
- Catalog, health and metrics endpoints
- The validation dependency on application routes
"""

from typing import Any

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from solar_validation.api.app import create_app
from solar_validation.api.dependencies import validation_dependency
from solar_validation.config.settings import Settings
from solar_validation.validation.models import ValidationRequest, ValidationResult
from solar_validation.validation.orchestrator import ValidationOrchestrator


class BrokenOrchestrator(ValidationOrchestrator):
    """Orchestrator whose validate always fails unexpectedly."""

    async def validate(self, request: ValidationRequest) -> ValidationResult:
        raise RuntimeError("engine down")


class MisconfiguredOrchestrator(ValidationOrchestrator):
    """Orchestrator whose validate raises a ValueError from a programming error."""

    async def validate(self, request: ValidationRequest) -> ValidationResult:
        raise ValueError("bad threshold")


@pytest.fixture
def client(orchestrator: ValidationOrchestrator) -> TestClient:
    """Test client bound to a fresh orchestrator."""
    return TestClient(create_app(orchestrator=orchestrator))


def contact_body(record: dict[str, Any], **overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "context": "user_input",
        "category": "customer",
        "data": {"primary": record},
        "rules": {"schemas": ["contact_form"]},
    }
    body.update(overrides)
    return body


class TestValidateEndpoint:
    """Tests for POST /api/v1/validate."""

    def test_valid_record(self, client: TestClient, contact_form: dict[str, Any]) -> None:
        response = client.post("/api/v1/validate", json=contact_body(contact_form))

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["result"]["overall_valid"] is True
        assert data["result"]["status"] == "success"
        assert data["result"]["results"]["schema_results"][0]["schema_name"] == "contact_form"

    def test_invalid_record(self, client: TestClient, contact_form: dict[str, Any]) -> None:
        contact_form["email"] = "not-an-email"

        response = client.post("/api/v1/validate", json=contact_body(contact_form))

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["error"]["code"] == "VALIDATION_ERROR"
        assert data["error"]["message"] == "Request validation failed"
        schema_result = data["error"]["details"]["schema_results"][0]
        assert schema_result["valid"] is False
        assert schema_result["errors"][0]["path"] == ["email"]

    def test_request_id_echoed(self, client: TestClient, contact_form: dict[str, Any]) -> None:
        response = client.post(
            "/api/v1/validate",
            json=contact_body(contact_form),
            headers={"X-Request-ID": "req_from_caller"},
        )

        assert response.headers["X-Request-ID"] == "req_from_caller"
        assert "X-Response-Time-Ms" in response.headers
        assert response.json()["result"]["request_id"] == "req_from_caller"

    def test_body_request_id_wins(self, client: TestClient, contact_form: dict[str, Any]) -> None:
        response = client.post(
            "/api/v1/validate",
            json=contact_body(contact_form, request_id="req_in_body"),
        )

        assert response.json()["result"]["request_id"] == "req_in_body"

    def test_generated_request_id(self, client: TestClient, contact_form: dict[str, Any]) -> None:
        response = client.post("/api/v1/validate", json=contact_body(contact_form))

        assert response.headers["X-Request-ID"].startswith("req_")

    def test_missing_context_is_malformed(self, client: TestClient, contact_form: dict[str, Any]) -> None:
        body = contact_body(contact_form)
        del body["context"]

        response = client.post("/api/v1/validate", json=body)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_unknown_context_is_malformed(self, client: TestClient, contact_form: dict[str, Any]) -> None:
        response = client.post(
            "/api/v1/validate",
            json=contact_body(contact_form, context="carrier_pigeon"),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_unexpected_failure(self, settings: Settings, contact_form: dict[str, Any]) -> None:
        client = TestClient(create_app(orchestrator=BrokenOrchestrator(settings=settings)))

        response = client.post("/api/v1/validate", json=contact_body(contact_form))

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_INTERNAL_ERROR"
        assert error["message"] == "Validation service failed"

    def test_dependency_cycle_is_server_error(self, client: TestClient) -> None:
        body = {
            "context": "system_internal",
            "category": "system_config",
            "data": {"primary": {"value": 5}},
            "rules": {
                "custom_rules": [
                    {"rule_id": "positive_number", "dependencies": ["percentage_range"]},
                    {"rule_id": "percentage_range", "dependencies": ["positive_number"]},
                ]
            },
        }

        response = client.post("/api/v1/validate", json=body)

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_INTERNAL_ERROR"
        assert error["details"]["error_code"] == "CYCLE_DETECTED"

    def test_unparseable_json(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/validate",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_value_error_inside_engine_is_server_error(
        self,
        settings: Settings,
        contact_form: dict[str, Any],
    ) -> None:
        client = TestClient(create_app(orchestrator=MisconfiguredOrchestrator(settings=settings)))

        response = client.post("/api/v1/validate", json=contact_body(contact_form))

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "VALIDATION_INTERNAL_ERROR"


class TestApiCredentials:
    """Tests for header credentials on api_request validations."""

    def _body(self, record: dict[str, Any]) -> dict[str, Any]:
        return {
            "context": "api_request",
            "category": "equipment",
            "data": {"primary": record},
            "rules": {"schemas": ["solar_panel_spec"]},
        }

    def test_api_key_header(self, client: TestClient, panel_spec: dict[str, Any]) -> None:
        response = client.post(
            "/api/v1/validate",
            json=self._body(panel_spec),
            headers={"X-API-Key": "key_live_123"},
        )

        assert response.status_code == 200

    def test_bearer_token_header(self, client: TestClient, panel_spec: dict[str, Any]) -> None:
        response = client.post(
            "/api/v1/validate",
            json=self._body(panel_spec),
            headers={"Authorization": "Bearer token_abc"},
        )

        assert response.status_code == 200

    def test_credentials_in_body_metadata(self, client: TestClient, panel_spec: dict[str, Any]) -> None:
        body = self._body(panel_spec)
        body["data"]["metadata"] = {"api_key": "key_live_123"}

        response = client.post("/api/v1/validate", json=body)

        assert response.status_code == 200

    def test_missing_credentials(self, client: TestClient, panel_spec: dict[str, Any]) -> None:
        response = client.post("/api/v1/validate", json=self._body(panel_spec))

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestCatalogEndpoints:
    """Tests for schema and cross-rule listings."""

    def test_list_schemas(self, client: TestClient) -> None:
        response = client.get("/api/v1/schemas")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 8
        names = [schema["name"] for schema in data["schemas"]]
        assert "solar_panel_spec" in names
        assert "system_cost" in names
        assert all(schema["field_count"] > 0 for schema in data["schemas"])

    def test_list_cross_rules(self, client: TestClient) -> None:
        response = client.get("/api/v1/cross-rules")

        assert response.status_code == 200
        data = response.json()
        assert "itemized_cost_total" in data["rules"]
        assert data["count"] == len(data["rules"])


class TestHealthEndpoints:
    """Tests for health, liveness and readiness checks."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["validation"]["schemas"] == 8
        assert "cache" not in data["components"]

    def test_deep_health(self, client: TestClient) -> None:
        data = client.get("/api/v1/health", params={"deep": True}).json()

        assert data["status"] == "healthy"
        assert data["components"]["cache"]["status"] == "healthy"
        assert "python_version" in data["components"]["system"]

    def test_liveness(self, client: TestClient) -> None:
        assert client.get("/api/v1/health/live").json() == {"status": "ok"}

    def test_readiness(self, client: TestClient) -> None:
        assert client.get("/api/v1/health/ready").json() == {"status": "ready"}


class TestRootEndpoints:
    """Tests for the root and metrics endpoints."""

    def test_root(self, client: TestClient) -> None:
        data = client.get("/").json()

        assert data["docs"] == "/docs"
        assert "version" in data

    def test_metrics_after_validation(self, client: TestClient, contact_form: dict[str, Any]) -> None:
        client.post("/api/v1/validate", json=contact_body(contact_form))

        response = client.get("/metrics")

        assert response.status_code == 200
        assert 'solar_validation_requests_total{context="user_input",category="customer",status="success"} 1.0' in (
            response.text
        )


class TestValidationDependency:
    """Tests for validation_dependency on application routes."""

    @pytest.fixture
    def guarded_client(self, orchestrator: ValidationOrchestrator) -> TestClient:
        app = create_app(orchestrator=orchestrator)

        @app.post("/quotes")
        async def create_quote(
            result: ValidationResult = Depends(
                validation_dependency(
                    ["system_cost"],
                    context="system_internal",
                    category="financial",
                    cross_validation_rules=["financial_calculation_accuracy"],
                )
            ),
        ) -> dict[str, Any]:
            return {"accepted": True, "request_id": result.request_id}

        return TestClient(app)

    def test_valid_body(self, guarded_client: TestClient, system_cost: dict[str, Any]) -> None:
        response = guarded_client.post("/quotes", json=system_cost, headers={"X-Request-ID": "req_quote"})

        assert response.status_code == 200
        assert response.json() == {"accepted": True, "request_id": "req_quote"}

    def test_invalid_body(self, guarded_client: TestClient, system_cost: dict[str, Any]) -> None:
        system_cost["total_cost"] = 30000

        response = guarded_client.post("/quotes", json=system_cost)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]["cross_validation_results"][0]["valid"] is False

    def test_unparseable_body(self, guarded_client: TestClient) -> None:
        response = guarded_client.post(
            "/quotes",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"
