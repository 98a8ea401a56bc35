"""
Working-hours windows in absolute time and their intersection across participants.
"""

from datetime import date, datetime, time, timedelta
from typing import List, Sequence

import pytz

from services.scheduling.core.intervals import (
    TimeInterval,
    intersection,
    merge_intervals,
)
from services.scheduling.schemas.availability import Participant


def _local_to_utc(day: date, minutes: int, tz) -> datetime:
    naive = datetime.combine(day, time()) + timedelta(minutes=minutes)
    return tz.localize(naive).astimezone(pytz.utc)


def working_windows(
    participant: Participant, search_range: TimeInterval
) -> List[TimeInterval]:
    """
    Absolute working windows of a participant within the search range.

    Each local calendar day touching the range contributes its configured
    window, converted from the participant's timezone and clipped to the
    range. A participant without working hours is available for the whole range.
    """
    working_hours = participant.working_hours
    if working_hours is None:
        return [search_range]

    tz = pytz.timezone(working_hours.timezone)
    day = search_range.start.astimezone(tz).date()
    last_day = search_range.end.astimezone(tz).date()

    windows = []
    while day <= last_day:
        hours = working_hours.for_weekday(day.weekday())
        if hours is not None:
            start = max(_local_to_utc(day, hours.start_minutes, tz), search_range.start)
            end = min(_local_to_utc(day, hours.end_minutes, tz), search_range.end)
            if start < end:
                windows.append(TimeInterval(start, end))
        day += timedelta(days=1)
    return merge_intervals(windows)


def intersect_windows(
    first: Sequence[TimeInterval], second: Sequence[TimeInterval]
) -> List[TimeInterval]:
    """Intersect two sorted, disjoint window lists."""
    result = []
    i = j = 0
    while i < len(first) and j < len(second):
        overlap = intersection(first[i], second[j])
        if overlap is not None:
            result.append(overlap)
        if first[i].end < second[j].end:
            i += 1
        else:
            j += 1
    return result


def mutual_windows(
    participants: Sequence[Participant], search_range: TimeInterval
) -> List[TimeInterval]:
    """
    Windows in which every given participant is within working hours.

    No participants yields no windows.
    """
    if not participants:
        return []
    windows = [search_range]
    for participant in participants:
        windows = intersect_windows(windows, working_windows(participant, search_range))
        if not windows:
            break
    return windows
