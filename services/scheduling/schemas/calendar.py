"""
Calendar data as returned by the calendar data provider.

Field names mirror the provider wire format (Google Calendar shape), the same
way the office service normalizes Microsoft events into it.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class EventTime(BaseModel):
    """Either a precise instant (dateTime) or an all-day date (date)."""

    dateTime: Optional[datetime] = None
    date: Optional[str] = None  # YYYY-MM-DD
    timeZone: Optional[str] = None  # IANA id


class CalendarEvent(BaseModel):
    id: str
    calendarId: Optional[str] = None
    summary: Optional[str] = None
    start: EventTime
    end: EventTime
    status: str = "confirmed"  # confirmed, tentative, cancelled
    transparency: str = "opaque"  # opaque, transparent
    recurringEventId: Optional[str] = None
    recurrence: Optional[List[str]] = None


class CalendarListEntry(BaseModel):
    id: str
    summary: Optional[str] = None
    accessRole: Optional[str] = None  # owner, reader, writer, freeBusyReader
    hidden: bool = False
    deleted: bool = False


class CalendarListResponse(BaseModel):
    calendars: List[CalendarListEntry] = Field(default_factory=list)


class EventListResponse(BaseModel):
    events: List[CalendarEvent] = Field(default_factory=list)


class BusyPeriod(BaseModel):
    start: datetime
    end: datetime


class FreeBusyCalendar(BaseModel):
    busy: List[BusyPeriod] = Field(default_factory=list)
    errors: Optional[List[Dict[str, Any]]] = None


class FreeBusyResponse(BaseModel):
    calendars: Dict[str, FreeBusyCalendar] = Field(default_factory=dict)
