"""Tests for error handling with RFC 7807 Problem Details."""

import pytest
from fastapi.testclient import TestClient

from farm.domain.exceptions import CapacityInvariantViolation, ValidationError
from farm.main import app
from farm.presentation.api_routes import get_allocator
from farm.presentation.error_handlers import _extract_field_errors
from farm.presentation.problem_details import ErrorCodes, ProblemDetailFactory


class _FailingAllocator:
    """Stands in for the allocator and fails every read."""

    def __init__(self, error: Exception):
        self.error = error

    def find_all(self):
        raise self.error


@pytest.fixture(name="failing_client")
def failing_client_fixture():
    def _client(error: Exception) -> TestClient:
        app.dependency_overrides[get_allocator] = lambda: _FailingAllocator(error)
        return TestClient(app, raise_server_exceptions=False)

    yield _client
    app.dependency_overrides.clear()


def test_validation_failed_problem():
    problem = ProblemDetailFactory.validation_failed(
        detail="Bad input",
        instance="/api/v1/animals",
        field_errors=[{"field": "name", "code": "field_required", "message": "x"}],
    )

    assert problem.status == 400
    assert problem.type.endswith("/validation-failed")
    assert problem.code == ErrorCodes.VALIDATION_FAILED
    assert problem.errors is not None
    assert problem.errors[0]["field"] == "name"


def test_resource_not_found_problem_has_default_detail():
    problem = ProblemDetailFactory.resource_not_found("animal", 7)

    assert problem.status == 404
    assert problem.type.endswith("/resource-not-found")
    assert problem.detail == "Animal 7 not found"
    assert problem.resource_type == "animal"
    assert problem.resource_id == 7


def test_internal_error_problem():
    problem = ProblemDetailFactory.internal_server_error(instance="/api/v1/barns")

    assert problem.status == 500
    assert problem.type.endswith("/internal-error")
    assert problem.code == ErrorCodes.INTERNAL_ERROR
    assert problem.model_dump(exclude_none=True)["instance"] == "/api/v1/barns"


@pytest.mark.parametrize(
    ("message", "code"),
    [
        ("Animal name cannot be empty", ErrorCodes.FIELD_REQUIRED),
        ("Animal name cannot be longer than 100 characters", ErrorCodes.FIELD_TOO_LONG),
        (
            "Animal name cannot contain newlines, tabs, or other control characters",
            ErrorCodes.FIELD_INVALID_FORMAT,
        ),
    ],
)
def test_name_errors_map_to_field_codes(message: str, code: str):
    errors = _extract_field_errors(ValidationError(message))

    assert errors == [
        {"field": "name", "code": code, "message": errors[0]["message"]}
    ]


def test_color_error_maps_to_favorite_color_field():
    errors = _extract_field_errors(ValidationError("Unknown favorite color: 'PLAID'"))

    assert [e["field"] for e in errors] == ["favorite_color"]
    assert errors[0]["code"] == ErrorCodes.FIELD_INVALID_VALUE


def test_capacity_violation_returns_internal_error(failing_client):
    client = failing_client(CapacityInvariantViolation(barn_id=3, size=21, capacity=20))

    response = client.get("/api/v1/animals")

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/problem+json")
    data = response.json()
    assert data["code"] == ErrorCodes.CAPACITY_EXCEEDED
    assert "No changes were saved" in data["detail"]


def test_unexpected_error_returns_internal_error(failing_client):
    client = failing_client(RuntimeError("boom"))

    response = client.get("/api/v1/animals")

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/problem+json")
    data = response.json()
    assert data["code"] == ErrorCodes.INTERNAL_ERROR
    assert "boom" not in data["detail"]


def test_debug_setting_does_not_expose_tracebacks(failing_client):
    # the debug setting only affects logging
    assert not app.debug
    client = failing_client(RuntimeError("boom"))

    response = client.get("/api/v1/animals")

    assert "Traceback" not in response.text
    assert response.json()["status"] == 500
