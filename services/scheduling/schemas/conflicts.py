"""
Conflict check request and response schemas.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from services.scheduling.schemas.calendar import CalendarEvent, EventTime


class ConflictType(str, Enum):
    DOUBLE_BOOKING = "double_booking"
    DIRECT_OVERLAP = "direct_overlap"
    BACK_TO_BACK = "back_to_back"
    RECURRING_CONFLICT = "recurring_conflict"


class ConflictSeverity(str, Enum):
    NONE = "none"
    WARNING = "warning"
    ERROR = "error"


class EventConflict(BaseModel):
    type: ConflictType
    severity: ConflictSeverity
    conflicting_event: CalendarEvent
    overlap_start: datetime
    overlap_end: datetime
    overlap_duration: int = Field(
        ..., ge=0, description="Overlap in minutes, 0 for buffer-only conflicts"
    )
    message: str


class SuggestedTime(BaseModel):
    start: datetime
    end: datetime
    reason: str


class ConflictCheckRequest(BaseModel):
    """Request model for checking a proposed interval against existing events."""

    start: EventTime
    end: EventTime
    calendar_ids: Optional[List[str]] = Field(
        None,
        description="Calendars to check. Defaults to every visible calendar of the requester",
    )
    exclude_event_id: Optional[str] = Field(
        None, description="Event to ignore, e.g. the event being edited"
    )
    buffer_minutes: int = Field(
        0, ge=0, le=1440, description="Minimum gap required around existing events"
    )
    check_all_day_events: bool = True


class ConflictCheckResponse(BaseModel):
    has_conflicts: bool
    severity: ConflictSeverity
    conflicts: List[EventConflict] = Field(default_factory=list)
    suggested_times: Optional[List[SuggestedTime]] = None
    checked_calendars: List[str] = Field(default_factory=list)
    buffer_minutes: int = 0
    failed_calendars: Optional[Dict[str, str]] = None


class ConflictCheckApiResponse(BaseModel):
    success: bool
    data: Optional[ConflictCheckResponse] = None
    message: Optional[str] = None
    request_id: str
