"""
Interval model shared by the conflict detector and the availability finder.

Every TimeInterval holds timezone-aware UTC datetimes and is half-open,
[start, end).
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

import pytz
from pytz.tzinfo import BaseTzInfo

from services.scheduling.core.exceptions import InvalidRangeError, InvalidTimeError
from services.scheduling.schemas.calendar import CalendarEvent, EventTime

DATE_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True)
class TimeInterval:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise InvalidRangeError(
                value=f"{self.start.isoformat()} - {self.end.isoformat()}"
            )


def ensure_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


def get_timezone(name: Optional[str]) -> BaseTzInfo:
    """Look up a pytz zone by IANA name. An empty name means UTC."""
    if not name:
        return pytz.utc
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        raise InvalidTimeError(f"Unknown timezone: {name}", value=name)


def _parse_date(value: str):
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise InvalidTimeError(f"Invalid all-day date: {value}", value=value)


def _local_midnight(day, tz) -> datetime:
    return tz.localize(datetime(day.year, day.month, day.day)).astimezone(pytz.utc)


def to_instant(
    event_time: EventTime, fallback_timezone: Optional[str] = None
) -> datetime:
    """
    Resolve an EventTime to an absolute UTC instant.

    A dateTime without offset is read in the EventTime's timeZone, then the
    fallback zone, then UTC. An all-day date resolves to local midnight in the
    same zone order.
    """
    tz = get_timezone(event_time.timeZone or fallback_timezone)
    if event_time.dateTime is not None:
        if event_time.dateTime.tzinfo is None:
            return tz.localize(event_time.dateTime).astimezone(pytz.utc)
        return event_time.dateTime.astimezone(pytz.utc)
    if event_time.date:
        return _local_midnight(_parse_date(event_time.date), tz)
    raise InvalidTimeError()


def to_interval(
    start: EventTime,
    end: Optional[EventTime] = None,
    fallback_timezone: Optional[str] = None,
) -> TimeInterval:
    """
    Convert a start/end EventTime pair to a TimeInterval.

    An all-day start whose end is missing or not after it covers that single
    day. Raises InvalidRangeError if a timed interval does not start before it
    ends.
    """
    start_instant = to_instant(start, fallback_timezone)
    end_instant = to_instant(end, fallback_timezone) if end is not None else None

    if start.dateTime is None and (end_instant is None or end_instant <= start_instant):
        tz = get_timezone(start.timeZone or fallback_timezone)
        next_day = _parse_date(start.date) + timedelta(days=1)
        end_instant = _local_midnight(next_day, tz)

    if end_instant is None:
        raise InvalidTimeError("End time is required for a timed interval")
    return TimeInterval(start_instant, end_instant)


def is_all_day(event: CalendarEvent) -> bool:
    return event.start.dateTime is None and bool(event.start.date)


def event_interval(
    event: CalendarEvent, fallback_timezone: Optional[str] = None
) -> TimeInterval:
    return to_interval(event.start, event.end, fallback_timezone)


def overlaps(a: TimeInterval, b: TimeInterval, buffer_minutes: int = 0) -> bool:
    """
    True when the intervals intersect, or when they are sequential with a gap
    strictly shorter than buffer_minutes.
    """
    if a.start < b.end and b.start < a.end:
        return True
    if buffer_minutes <= 0:
        return False

    buffer = timedelta(minutes=buffer_minutes)
    if a.end <= b.start:
        return b.start - a.end < buffer
    return a.start - b.end < buffer


def intersection(a: TimeInterval, b: TimeInterval) -> Optional[TimeInterval]:
    start = max(a.start, b.start)
    end = min(a.end, b.end)
    if start >= end:
        return None
    return TimeInterval(start, end)


def duration_minutes(interval: TimeInterval) -> int:
    return round((interval.end - interval.start).total_seconds() / 60)


def padded(interval: TimeInterval, minutes: int) -> TimeInterval:
    """Widen an interval by the given number of minutes on both sides."""
    delta = timedelta(minutes=max(minutes, 0))
    return TimeInterval(interval.start - delta, interval.end + delta)


def merge_intervals(intervals: Iterable[TimeInterval]) -> List[TimeInterval]:
    """Sort intervals by start and coalesce the ones that touch or overlap."""
    merged: List[TimeInterval] = []
    for interval in sorted(intervals, key=lambda i: (i.start, i.end)):
        if merged and interval.start <= merged[-1].end:
            if interval.end > merged[-1].end:
                merged[-1] = TimeInterval(merged[-1].start, interval.end)
        else:
            merged.append(interval)
    return merged
