"""
Slot scoring.

Each axis lies in [0, 1] and the overall score is their weighted average,
evaluated on the slot start in a reference timezone.
"""

from datetime import datetime
from typing import Optional

from services.scheduling.schemas.availability import (
    ScoreBreakdown,
    TimeOfDay,
    TimePreferences,
)

WEIGHTS = {
    "time_of_day": 0.35,
    "day_of_week": 0.25,
    "proximity": 0.15,
    "quality": 0.25,
}

# Slots touching the edge of their mutual window never score above this
EDGE_QUALITY_CAP = 0.8

# (full score hours, near-before hour, near-after hour) per part of day
_TIME_OF_DAY_RANGES = {
    TimeOfDay.MORNING: ((8, 12), 7, 12),
    TimeOfDay.AFTERNOON: ((13, 17), 12, 17),
    TimeOfDay.EVENING: ((17, 20), 16, 20),
}


def score_time_of_day(local_start: datetime, preference: TimeOfDay) -> float:
    if preference == TimeOfDay.ANY:
        return 1.0
    (first, last), before, after = _TIME_OF_DAY_RANGES[preference]
    hour = local_start.hour
    if first <= hour < last:
        return 1.0
    if hour == before:
        return 0.8
    if hour == after:
        return 0.7
    return 0.3


def score_day_of_week(
    local_start: datetime, preferences: Optional[TimePreferences]
) -> float:
    iso_day = local_start.isoweekday()
    if preferences and preferences.avoid_days and iso_day in preferences.avoid_days:
        return 0.2
    if preferences and preferences.preferred_days:
        return 1.0 if iso_day in preferences.preferred_days else 0.5
    return 1.0 if iso_day <= 5 else 0.5


def score_proximity(start: datetime, origin: datetime, prefer_sooner: bool = True) -> float:
    """1.0 at the origin, down to 0.7 after a week and 0.3 from 30 days on."""
    if not prefer_sooner:
        return 1.0
    days = (start - origin).total_seconds() / 86400
    if days <= 0:
        return 1.0
    if days <= 7:
        return 1.0 - (days / 7) * 0.3
    if days <= 30:
        return max(0.3, 0.7 - ((days - 7) / 23) * 0.4)
    return 0.3


def score_quality(local_start: datetime, at_window_edge: bool = False) -> float:
    hour = local_start.hour
    if hour < 7 or hour >= 20:
        score = 0.3
    elif hour < 8 or hour >= 19:
        score = 0.7
    else:
        score = 1.0
    if at_window_edge:
        score = min(score, EDGE_QUALITY_CAP)
    return score


def _bounded(value: float) -> float:
    return min(1.0, max(0.0, round(value, 4)))


def score_slot(
    start: datetime,
    origin: datetime,
    tz,
    preferences: Optional[TimePreferences] = None,
    at_window_edge: bool = False,
) -> tuple[float, ScoreBreakdown]:
    """Score a slot start; tz is the pytz zone the local axes are read in."""
    preferences = preferences or TimePreferences()
    local_start = start.astimezone(tz)

    breakdown = ScoreBreakdown(
        time_of_day=_bounded(
            score_time_of_day(local_start, preferences.preferred_time_of_day)
        ),
        day_of_week=_bounded(score_day_of_week(local_start, preferences)),
        proximity=_bounded(score_proximity(start, origin, preferences.prefer_sooner)),
        quality=_bounded(score_quality(local_start, at_window_edge)),
    )
    score = sum(getattr(breakdown, axis) * weight for axis, weight in WEIGHTS.items())
    return _bounded(score), breakdown
