"""
Validation errors raised by the scheduling engines.

All of them are caller mistakes detected before any calendar data is read,
so they surface as HTTP 422 through the shared exception handlers.
"""

from typing import Any, Optional

from services.common.http_errors import ErrorCode, ValidationError


class InvalidRangeError(ValidationError):
    """Raised when an interval or search range does not start before it ends."""

    def __init__(
        self,
        message: str = "start time must be before end time",
        field: Optional[str] = None,
        value: Any = None,
    ):
        super().__init__(message, field=field, value=value, code=ErrorCode.INVALID_RANGE)


class InvalidDurationError(ValidationError):
    """Raised when a requested meeting duration is not positive."""

    def __init__(self, duration: int):
        super().__init__(
            "Duration must be a positive number of minutes",
            field="duration",
            value=duration,
            code=ErrorCode.INVALID_DURATION,
        )


class NoParticipantsError(ValidationError):
    """Raised when an availability search names no participants."""

    def __init__(self) -> None:
        super().__init__(
            "At least one participant is required",
            field="participants",
            code=ErrorCode.NO_PARTICIPANTS,
        )


class InvalidTimeError(ValidationError):
    """Raised for an EventTime that carries neither dateTime nor date, or can't be parsed."""

    def __init__(
        self,
        message: str = "EventTime must have either dateTime or date",
        value: Any = None,
    ):
        super().__init__(message, value=value, code=ErrorCode.INVALID_TIME)
