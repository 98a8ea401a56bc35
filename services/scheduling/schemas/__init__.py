from services.scheduling.schemas.availability import (
    AvailabilityApiResponse,
    AvailabilityRequest,
    AvailabilityResponse,
    AvailableSlot,
    DateRange,
    DayHours,
    LocalTime,
    Participant,
    ParticipantLocalTime,
    ScoreBreakdown,
    TimeOfDay,
    TimePreferences,
    WorkingHours,
)
from services.scheduling.schemas.calendar import (
    BusyPeriod,
    CalendarEvent,
    CalendarListEntry,
    CalendarListResponse,
    EventListResponse,
    EventTime,
    FreeBusyCalendar,
    FreeBusyResponse,
)
from services.scheduling.schemas.conflicts import (
    ConflictCheckApiResponse,
    ConflictCheckRequest,
    ConflictCheckResponse,
    ConflictSeverity,
    ConflictType,
    EventConflict,
    SuggestedTime,
)

__all__ = [
    "AvailabilityApiResponse",
    "AvailabilityRequest",
    "AvailabilityResponse",
    "AvailableSlot",
    "BusyPeriod",
    "CalendarEvent",
    "CalendarListEntry",
    "CalendarListResponse",
    "ConflictCheckApiResponse",
    "ConflictCheckRequest",
    "ConflictCheckResponse",
    "ConflictSeverity",
    "ConflictType",
    "DateRange",
    "DayHours",
    "EventConflict",
    "EventListResponse",
    "EventTime",
    "FreeBusyCalendar",
    "FreeBusyResponse",
    "LocalTime",
    "Participant",
    "ParticipantLocalTime",
    "ScoreBreakdown",
    "SuggestedTime",
    "TimeOfDay",
    "TimePreferences",
    "WorkingHours",
]
