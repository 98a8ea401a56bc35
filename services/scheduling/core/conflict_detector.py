"""
Conflict detection for a proposed event against existing calendar events.
"""

from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from services.common.logging_config import get_logger
from services.scheduling.core.exceptions import InvalidRangeError, InvalidTimeError
from services.scheduling.core.fetching import gather_bounded
from services.scheduling.core.intervals import (
    TimeInterval,
    duration_minutes,
    event_interval,
    intersection,
    is_all_day,
    overlaps,
    padded,
    to_interval,
)
from services.scheduling.providers.base import CalendarDataProvider
from services.scheduling.schemas.calendar import CalendarEvent, EventListResponse
from services.scheduling.schemas.conflicts import (
    ConflictCheckRequest,
    ConflictCheckResponse,
    ConflictSeverity,
    ConflictType,
    EventConflict,
    SuggestedTime,
)

logger = get_logger(__name__)

# Recurring overlaps up to this many minutes are reported as warnings
RECURRING_ERROR_THRESHOLD_MINUTES = 15
MAX_SUGGESTIONS = 3


def conflict_severity(
    conflict_type: ConflictType, event: CalendarEvent, overlap_minutes: int
) -> ConflictSeverity:
    # Cancelled events are filtered before the sweep; sources that keep them
    # still only get a warning.
    if event.status == "cancelled":
        return ConflictSeverity.WARNING
    if conflict_type == ConflictType.BACK_TO_BACK:
        return ConflictSeverity.WARNING
    if conflict_type == ConflictType.RECURRING_CONFLICT:
        if overlap_minutes > RECURRING_ERROR_THRESHOLD_MINUTES:
            return ConflictSeverity.ERROR
        return ConflictSeverity.WARNING
    return ConflictSeverity.ERROR


def overall_severity(conflicts: List[EventConflict]) -> ConflictSeverity:
    if not conflicts:
        return ConflictSeverity.NONE
    if any(c.severity == ConflictSeverity.ERROR for c in conflicts):
        return ConflictSeverity.ERROR
    return ConflictSeverity.WARNING


def _title(event: CalendarEvent) -> str:
    return event.summary or "(No title)"


def conflict_message(
    conflict_type: ConflictType, event: CalendarEvent, overlap_minutes: int
) -> str:
    title = _title(event)
    if conflict_type == ConflictType.DOUBLE_BOOKING:
        return f'Double-booked with "{title}" at the exact same time'
    if conflict_type == ConflictType.BACK_TO_BACK:
        return f'Back-to-back with "{title}" without sufficient buffer time'
    if conflict_type == ConflictType.RECURRING_CONFLICT:
        return f'Conflicts with recurring event "{title}"'
    unit = "minute" if overlap_minutes == 1 else "minutes"
    return f'Overlaps with "{title}" for {overlap_minutes} {unit}'


def classify_conflict(
    proposed: TimeInterval, existing: TimeInterval, event: CalendarEvent
) -> EventConflict:
    """Build the conflict record for an event already known to overlap."""
    overlap = intersection(proposed, existing)
    if overlap is None:
        conflict_type = ConflictType.BACK_TO_BACK
        overlap_start, overlap_end, minutes = existing.start, existing.end, 0
    else:
        if proposed == existing:
            conflict_type = ConflictType.DOUBLE_BOOKING
        elif event.recurringEventId or event.recurrence:
            conflict_type = ConflictType.RECURRING_CONFLICT
        else:
            conflict_type = ConflictType.DIRECT_OVERLAP
        overlap_start, overlap_end = overlap.start, overlap.end
        minutes = duration_minutes(overlap)

    return EventConflict(
        type=conflict_type,
        severity=conflict_severity(conflict_type, event, minutes),
        conflicting_event=event,
        overlap_start=overlap_start,
        overlap_end=overlap_end,
        overlap_duration=minutes,
        message=conflict_message(conflict_type, event, minutes),
    )


def find_conflicts(
    proposed: TimeInterval,
    candidates: List[Tuple[TimeInterval, CalendarEvent]],
    buffer_minutes: int = 0,
) -> List[EventConflict]:
    """
    Sweep candidates in start order and classify every overlap.

    Stops at the first event starting after the proposed end plus buffer.
    """
    horizon = proposed.end + timedelta(minutes=buffer_minutes)
    conflicts = []
    for existing, event in sorted(candidates, key=lambda c: (c[0].start, c[0].end)):
        if existing.start > horizon:
            break
        if overlaps(proposed, existing, buffer_minutes):
            conflicts.append(classify_conflict(proposed, existing, event))
    return conflicts


def suggest_alternatives(
    proposed: TimeInterval, conflicts: List[EventConflict], gap_minutes: int
) -> List[SuggestedTime]:
    """
    Offer a slot of the proposed length before the first conflict (when the
    proposed start leaves room for it) and one after the last conflict.
    """
    if not conflicts:
        return []

    length = proposed.end - proposed.start
    gap = timedelta(minutes=gap_minutes)
    suggestions = []

    first = conflicts[0]
    if first.overlap_start - proposed.start >= length:
        end = first.overlap_start - gap
        suggestions.append(
            SuggestedTime(
                start=end - length,
                end=end,
                reason=f'Before conflicting event "{_title(first.conflicting_event)}"',
            )
        )

    last = max(conflicts, key=lambda c: c.overlap_end)
    start = last.overlap_end + gap
    suggestions.append(
        SuggestedTime(
            start=start,
            end=start + length,
            reason=f'After conflicting event "{_title(last.conflicting_event)}"',
        )
    )
    return suggestions[:MAX_SUGGESTIONS]


class ConflictDetector:
    """Checks a proposed interval against the events of a user's calendars."""

    def __init__(
        self,
        provider: CalendarDataProvider,
        max_concurrency: int = 5,
        suggestion_gap_minutes: int = 5,
    ):
        self.provider = provider
        self.max_concurrency = max_concurrency
        self.suggestion_gap_minutes = suggestion_gap_minutes

    async def check_conflicts(
        self, requester_id: str, request: ConflictCheckRequest
    ) -> ConflictCheckResponse:
        proposed = to_interval(request.start, request.end)
        buffer_minutes = request.buffer_minutes

        calendar_ids = await self._resolve_calendars(requester_id, request.calendar_ids)
        window = padded(proposed, buffer_minutes)

        async def fetch(calendar_id: str) -> EventListResponse:
            return await self.provider.list_events(
                requester_id,
                calendar_id,
                window.start,
                window.end,
                single_events=True,
            )

        results = await gather_bounded(
            calendar_ids, fetch, self.max_concurrency, unit="calendar"
        )

        events: List[CalendarEvent] = []
        failed_calendars: Dict[str, str] = {}
        for result in results:
            if not result.ok:
                failed_calendars[result.key] = result.error
                continue
            for event in result.value.events:
                if event.calendarId is None:
                    event = event.model_copy(update={"calendarId": result.key})
                events.append(event)

        candidates = self._candidates(events, request)
        conflicts = find_conflicts(proposed, candidates, buffer_minutes)
        severity = overall_severity(conflicts)

        suggested_times = None
        if conflicts:
            gap = max(self.suggestion_gap_minutes, buffer_minutes)
            suggested_times = suggest_alternatives(proposed, conflicts, gap)

        logger.info(
            "Conflict check completed",
            requester_id=requester_id,
            calendars=len(calendar_ids),
            failed_calendars=len(failed_calendars),
            events_considered=len(candidates),
            conflicts=len(conflicts),
            severity=severity.value,
        )

        return ConflictCheckResponse(
            has_conflicts=bool(conflicts),
            severity=severity,
            conflicts=conflicts,
            suggested_times=suggested_times,
            checked_calendars=calendar_ids,
            buffer_minutes=buffer_minutes,
            failed_calendars=failed_calendars or None,
        )

    async def _resolve_calendars(
        self, requester_id: str, calendar_ids: Optional[List[str]]
    ) -> List[str]:
        if calendar_ids:
            return list(dict.fromkeys(calendar_ids))
        try:
            listing = await self.provider.list_calendars(requester_id)
        except Exception as e:
            logger.warning(
                "Failed to list calendars, checking none",
                requester_id=requester_id,
                error=str(e),
            )
            return []
        return [c.id for c in listing.calendars if not c.hidden and not c.deleted]

    def _candidates(
        self, events: List[CalendarEvent], request: ConflictCheckRequest
    ) -> List[Tuple[TimeInterval, CalendarEvent]]:
        candidates = []
        for event in events:
            if request.exclude_event_id and event.id == request.exclude_event_id:
                continue
            if event.status == "cancelled" or event.transparency == "transparent":
                continue
            if not request.check_all_day_events and is_all_day(event):
                continue
            try:
                interval = event_interval(event, request.start.timeZone)
            except (InvalidTimeError, InvalidRangeError) as e:
                logger.warning(
                    "Skipping event with unusable times",
                    event_id=event.id,
                    calendar_id=event.calendarId,
                    error=e.message,
                )
                continue
            candidates.append((interval, event))
        return candidates
