"""
Availability search request and response schemas.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

import pytz
from pydantic import BaseModel, Field, field_validator, model_validator

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

DEFAULT_LIMIT = 10
MAX_LIMIT = 50


def _to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class DayHours(BaseModel):
    """Working window for one weekday, in the participant's local time."""

    start: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$", examples=["09:00"])
    end: str = Field(
        ..., pattern=r"^(([01]\d|2[0-3]):[0-5]\d|24:00)$", examples=["17:00"]
    )

    @model_validator(mode="after")
    def validate_end_after_start(self) -> "DayHours":
        if self.end_minutes <= self.start_minutes:
            raise ValueError("working hours end must be after start")
        return self

    @property
    def start_minutes(self) -> int:
        return _to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return _to_minutes(self.end)


class WorkingHours(BaseModel):
    timezone: str = Field(..., description="IANA timezone, e.g. America/New_York")
    days: Dict[str, DayHours] = Field(
        default_factory=dict,
        description="Weekday name -> working window. Missing days are non-working",
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        if v not in pytz.all_timezones_set:
            raise ValueError(f"unknown timezone: {v}")
        return v

    @field_validator("days")
    @classmethod
    def validate_day_names(cls, v: Dict[str, DayHours]) -> Dict[str, DayHours]:
        normalized = {}
        for name, hours in v.items():
            key = name.lower()
            if key not in WEEKDAY_NAMES:
                raise ValueError(f'day must be one of: {", ".join(WEEKDAY_NAMES)}')
            normalized[key] = hours
        return normalized

    def for_weekday(self, weekday: int) -> Optional[DayHours]:
        """Working window for a Python weekday number (Monday == 0)."""
        return self.days.get(WEEKDAY_NAMES[weekday])


class Participant(BaseModel):
    user_id: str
    calendar_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    working_hours: Optional[WorkingHours] = None
    is_required: bool = True

    @property
    def timezone(self) -> str:
        return self.working_hours.timezone if self.working_hours else "UTC"

    @property
    def key(self) -> str:
        return f"{self.user_id}/{self.calendar_id}"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    ANY = "any"


class TimePreferences(BaseModel):
    preferred_time_of_day: TimeOfDay = TimeOfDay.ANY
    preferred_days: Optional[List[int]] = Field(
        None, description="ISO weekday numbers, 1 = Monday ... 7 = Sunday"
    )
    avoid_days: Optional[List[int]] = Field(
        None, description="ISO weekday numbers to avoid"
    )
    prefer_sooner: bool = True
    min_quality_score: Optional[float] = Field(None, ge=0.0, le=1.0)

    @field_validator("preferred_days", "avoid_days")
    @classmethod
    def validate_iso_weekdays(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        if v is not None and any(day < 1 or day > 7 for day in v):
            raise ValueError("weekdays must be between 1 (Monday) and 7 (Sunday)")
        return v


class DateRange(BaseModel):
    start: datetime
    end: datetime


class AvailabilityRequest(BaseModel):
    """
    Request model for a mutual availability search.

    Participants, duration and range ordering are checked by the finder itself
    so each failure keeps its own error code.
    """

    participants: List[Participant]
    date_range: DateRange
    duration: int = Field(..., description="Meeting duration in minutes")
    buffer_minutes: int = Field(0, ge=0, le=1440)
    preferences: Optional[TimePreferences] = None
    limit: int = Field(DEFAULT_LIMIT, description=f"Clamped to 1..{MAX_LIMIT}")

    @field_validator("limit")
    @classmethod
    def clamp_limit(cls, v: int) -> int:
        return max(1, min(v, MAX_LIMIT))


class ScoreBreakdown(BaseModel):
    time_of_day: float = Field(..., ge=0.0, le=1.0)
    day_of_week: float = Field(..., ge=0.0, le=1.0)
    proximity: float = Field(..., ge=0.0, le=1.0)
    quality: float = Field(..., ge=0.0, le=1.0)


class LocalTime(BaseModel):
    start: str
    end: str


class ParticipantLocalTime(BaseModel):
    user_id: str
    calendar_id: str
    timezone: str
    local_time: LocalTime


class AvailableSlot(BaseModel):
    start: datetime
    end: datetime
    score: float = Field(..., ge=0.0, le=1.0)
    score_breakdown: ScoreBreakdown
    participants: List[ParticipantLocalTime] = Field(default_factory=list)


class AvailabilityResponse(BaseModel):
    slots: List[AvailableSlot] = Field(default_factory=list)
    searched_range: DateRange
    participant_count: int
    request_duration: int
    failed_participants: Optional[Dict[str, str]] = None


class AvailabilityApiResponse(BaseModel):
    success: bool
    data: Optional[AvailabilityResponse] = None
    message: Optional[str] = None
    request_id: str
