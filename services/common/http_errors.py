"""
Shared HTTP error classes and utilities for Briefly services.

Provides:
- Base exception class for API errors
- Common subclasses (Validation, Auth, Provider)
- Shared error response model
- Utility to convert exceptions to error responses
- FastAPI exception handler registration

Common Usage Patterns:
=====================

Validation error with field context:
>>> from services.common.http_errors import ValidationError
>>> error = ValidationError("duration must be positive", field="duration", value=-30)

Provider failure while reading calendar data:
>>> from services.common.http_errors import ProviderError, ErrorCode
>>> error = ProviderError(
...     message="Office service returned 503",
...     provider="office",
...     code=ErrorCode.PROVIDER_UNAVAILABLE,
...     response_body='{"detail": "unavailable"}',
... )

FastAPI Integration:
>>> from fastapi import FastAPI
>>> from services.common.http_errors import register_briefly_exception_handlers
>>> app = FastAPI()
>>> register_briefly_exception_handlers(app)

Error Code Taxonomy:
===================
- VALIDATION_* / INVALID_* : Input validation errors (422)
- AUTH_* : Authentication errors (401)
- ACCESS_* : Authorization/permission errors (403)
- PROVIDER_* : External provider integration errors (502)
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from services.common.logging_config import request_id_var


class ErrorCode(str, Enum):
    """
    Standardized error codes for Briefly services.

    Error codes are organized by category and follow the ALL_CAPS naming convention.
    """

    # ==========================================
    # GENERAL ERRORS (4xx client errors)
    # ==========================================
    VALIDATION_FAILED = "VALIDATION_FAILED"  # HTTP 422 - Input validation failed
    INTERNAL_ERROR = "INTERNAL_ERROR"  # HTTP 500 - Generic internal error

    # ==========================================
    # SCHEDULING VALIDATION ERRORS (422)
    # ==========================================
    INVALID_RANGE = "INVALID_RANGE"  # Interval start is not before its end
    INVALID_DURATION = "INVALID_DURATION"  # Requested duration is not positive
    NO_PARTICIPANTS = "NO_PARTICIPANTS"  # Availability search without participants
    INVALID_TIME = "INVALID_TIME"  # EventTime with neither dateTime nor date

    # ==========================================
    # AUTHENTICATION ERRORS (401 Unauthorized)
    # ==========================================
    AUTH_FAILED = "AUTH_FAILED"  # Generic authentication failure

    # ==========================================
    # AUTHORIZATION ERRORS (403 Forbidden)
    # ==========================================
    ACCESS_DENIED = "ACCESS_DENIED"  # Insufficient permissions

    # ==========================================
    # PROVIDER ERRORS (502 Bad Gateway)
    # ==========================================
    PROVIDER_ERROR = "PROVIDER_ERROR"  # Generic external provider error
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"  # External provider not available


class ErrorResponse(BaseModel):
    """
    Standardized error response model for Briefly services.

    Attributes:
        type: Error type categorization (e.g., "validation_error", "auth_error")
        message: Human-readable error message for end users
        details: Optional dictionary containing additional error context
        timestamp: ISO 8601 timestamp of when the error occurred
        request_id: Unique identifier for tracing and debugging purposes
    """

    type: str
    message: str
    details: Optional[Dict[str, Any]] = None
    timestamp: str
    request_id: str


def _current_request_id() -> str:
    """Return the request ID from context, or a fresh UUID outside a request."""
    request_id = request_id_var.get()
    if not request_id or request_id == "uninitialized":
        return str(uuid.uuid4())
    return request_id


class BrieflyAPIException(Exception):
    """
    Base exception class for all Briefly API errors.

    Provides consistent error handling, response formatting, and request
    tracking. Timestamps and request IDs are captured when the error is raised.

    Args:
        message: The error message to display to users
        details: Optional dictionary with additional error context
        error_type: Error category string (defaults to "internal_error")
        error_code: Specific error code from ErrorCode enum
        status_code: HTTP status code (defaults to 500)
        request_id: Optional request ID (taken from context if not provided)
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_type: str = "internal_error",
        error_code: Optional[ErrorCode] = None,
        status_code: int = 500,
        request_id: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        self.error_type = error_type
        self.error_code = error_code
        self.status_code = status_code
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.request_id = request_id or _current_request_id()
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """
        Convert exception to ErrorResponse Pydantic model.

        Includes the error code in details if present.
        """
        details = {
            **self.details,
            **({"code": self.error_code.value} if self.error_code else {}),
        }
        return ErrorResponse(
            type=self.error_type,
            message=self.message,
            details=details if details else None,
            timestamp=self.timestamp,
            request_id=self.request_id,
        )


class ValidationError(BrieflyAPIException):
    """
    Exception for input validation errors (HTTP 422).

    Args:
        message: Human-readable description of the validation failure
        field: Optional field name that failed validation
        value: Optional invalid value that was provided
        details: Optional additional validation context
        code: Specific error code (defaults to VALIDATION_FAILED)
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_FAILED,
    ):
        validation_details = details or {}
        if field:
            validation_details["field"] = field
        if value is not None:
            validation_details["value"] = str(value)
        super().__init__(
            message=message,
            details=validation_details,
            error_type="validation_error",
            error_code=code,
            status_code=422,
        )
        self.field = field
        self.value = value


class AuthError(BrieflyAPIException):
    """
    Exception for authentication errors (HTTP 401, or 403 for denied access).
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.AUTH_FAILED,
        status_code: int = 401,
    ):
        super().__init__(
            message=message,
            details=details,
            error_type="auth_error",
            error_code=code,
            status_code=status_code,
        )


class ProviderError(BrieflyAPIException):
    """
    Exception for external provider integration errors (HTTP 502).

    Raised when a calendar data collaborator returns an error or cannot be
    reached.

    Attributes:
        provider: Name of the external provider
        response_body: Raw response body from the provider (for debugging)
        retry_after: Seconds to wait before retrying (from rate limit headers)
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.PROVIDER_ERROR,
        status_code: int = 502,
        response_body: Optional[str] = None,
        retry_after: Optional[int] = None,
    ):
        provider_details = details or {}
        if provider:
            provider_details["provider"] = provider
        if response_body:
            provider_details["response_body"] = response_body
        if retry_after is not None:
            provider_details["retry_after"] = retry_after
        super().__init__(
            message=message,
            details=provider_details,
            error_type="provider_error",
            error_code=code,
            status_code=status_code,
        )
        self.provider = provider
        self.response_body = response_body
        self.retry_after = retry_after


def exception_to_response(exc: Exception) -> ErrorResponse:
    """
    Convert any exception to a standardized ErrorResponse Pydantic model.

    1. BrieflyAPIException: Uses the built-in to_error_response() method
    2. HTTPException: Extracts detail information and normalizes format
    3. Generic Exception: Creates a safe internal error response

    Note:
        Generic exceptions only expose their type name in details.
    """
    if isinstance(exc, BrieflyAPIException):
        return exc.to_error_response()
    elif isinstance(exc, HTTPException):
        detail = (
            exc.detail if isinstance(exc.detail, dict) else {"message": str(exc.detail)}
        )
        return ErrorResponse(
            type="http_error",
            message=detail.get("message", "HTTP error"),
            details=detail,
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=_current_request_id(),
        )
    else:
        return ErrorResponse(
            type="internal_error",
            message="An unexpected error occurred",
            details={"error_type": type(exc).__name__},
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=_current_request_id(),
        )


def register_briefly_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers for FastAPI applications.

    - BrieflyAPIException: Returns exception's status_code with error details
    - HTTPException: Returns exception's status_code with normalized details
    - Generic Exception: Returns 500 status with safe error message

    This function should be called once during application initialization.
    """
    from fastapi import Request
    from fastapi.responses import JSONResponse

    @app.exception_handler(BrieflyAPIException)
    async def briefly_api_exception_handler(
        request: Request, exc: BrieflyAPIException
    ) -> JSONResponse:
        error_response = exc.to_error_response()
        return JSONResponse(
            status_code=exc.status_code, content=error_response.model_dump()
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        error_response = exception_to_response(exc)
        return JSONResponse(
            status_code=exc.status_code, content=error_response.model_dump()
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        error_response = exception_to_response(exc)
        return JSONResponse(status_code=500, content=error_response.model_dump())
