"""
Unit tests for HTTP error handling functionality.

Tests request ID correlation, error response shape and the FastAPI
exception handlers.
"""

import re

from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from services.common.http_errors import (
    AuthError,
    ErrorCode,
    ProviderError,
    ValidationError,
    exception_to_response,
    register_briefly_exception_handlers,
)
from services.common.logging_config import request_id_var

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class TestRequestIDCorrelation:
    """Test request ID correlation across exception handlers."""

    def setup_method(self):
        """Reset request_id_var before each test."""
        request_id_var.set("uninitialized")

    def test_request_id_from_context(self):
        request_id_var.set("test-request-123")

        response = exception_to_response(
            HTTPException(status_code=422, detail={"message": "Validation failed"})
        )

        assert response.request_id == "test-request-123"

    def test_exception_captures_request_id_when_raised(self):
        request_id_var.set("req-1")
        error = ValidationError("bad input")
        request_id_var.set("req-2")

        assert error.to_error_response().request_id == "req-1"

    def test_request_id_generation_outside_context(self):
        for exc in (
            HTTPException(status_code=422, detail="Validation failed"),
            ValueError("Something went wrong"),
            ValidationError("bad input"),
        ):
            response = exception_to_response(exc)
            assert UUID_PATTERN.match(
                response.request_id
            ), f"Invalid UUID format: {response.request_id}"


class TestErrorResponses:
    def setup_method(self):
        request_id_var.set("uninitialized")

    def test_validation_error_details(self):
        error = ValidationError(
            "Duration must be positive",
            field="duration",
            value=-30,
            code=ErrorCode.INVALID_DURATION,
        )

        response = error.to_error_response()

        assert error.status_code == 422
        assert response.type == "validation_error"
        assert response.details == {
            "field": "duration",
            "value": "-30",
            "code": "INVALID_DURATION",
        }

    def test_auth_error_defaults_to_401(self):
        error = AuthError("API key required")
        assert error.status_code == 401
        assert error.to_error_response().details == {"code": "AUTH_FAILED"}

    def test_access_denied(self):
        error = AuthError("nope", code=ErrorCode.ACCESS_DENIED, status_code=403)
        assert error.status_code == 403
        assert error.to_error_response().details["code"] == "ACCESS_DENIED"

    def test_provider_error_details(self):
        error = ProviderError(
            "Office service returned HTTP 429",
            provider="office",
            response_body="slow down",
            retry_after=30,
        )

        details = error.to_error_response().details

        assert error.status_code == 502
        assert details["provider"] == "office"
        assert details["response_body"] == "slow down"
        assert details["retry_after"] == 30
        assert details["code"] == "PROVIDER_ERROR"

    def test_http_exception_with_string_detail(self):
        response = exception_to_response(HTTPException(status_code=404, detail="Gone"))
        assert response.type == "http_error"
        assert response.message == "Gone"

    def test_generic_exception_hides_message(self):
        response = exception_to_response(RuntimeError("database password is hunter2"))
        assert response.type == "internal_error"
        assert response.message == "An unexpected error occurred"
        assert response.details == {"error_type": "RuntimeError"}


class TestExceptionHandlers:
    def test_handlers_render_error_response(self):
        app = FastAPI()
        register_briefly_exception_handlers(app)

        @app.get("/validation")
        def raise_validation():
            raise ValidationError("bad", field="x", code=ErrorCode.INVALID_RANGE)

        @app.get("/provider")
        def raise_provider():
            raise ProviderError("down", provider="office")

        client = TestClient(app)

        response = client.get("/validation")
        assert response.status_code == 422
        assert response.json()["details"]["code"] == "INVALID_RANGE"

        response = client.get("/provider")
        assert response.status_code == 502
        assert response.json()["type"] == "provider_error"
