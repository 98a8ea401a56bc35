"""
Mutual availability search across participants' calendars.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytz

from services.common.logging_config import get_logger
from services.scheduling.core.exceptions import (
    InvalidDurationError,
    InvalidRangeError,
    NoParticipantsError,
)
from services.scheduling.core.fetching import gather_bounded
from services.scheduling.core.intervals import (
    TimeInterval,
    ensure_utc,
    merge_intervals,
    overlaps,
    padded,
)
from services.scheduling.core.scoring import score_slot
from services.scheduling.core.working_hours import mutual_windows
from services.scheduling.providers.base import CalendarDataProvider
from services.scheduling.schemas.availability import (
    AvailabilityRequest,
    AvailabilityResponse,
    AvailableSlot,
    DateRange,
    LocalTime,
    Participant,
    ParticipantLocalTime,
)
from services.scheduling.schemas.calendar import FreeBusyResponse

logger = get_logger(__name__)


def candidate_slots(
    windows: List[TimeInterval], duration: int, step_minutes: int
) -> List[tuple[TimeInterval, TimeInterval]]:
    """
    Fixed-length slots inside each window, paired with their window.

    The step never exceeds the duration.
    """
    slots = []
    longest = max((w.end - w.start for w in windows), default=timedelta(0))
    if duration > longest.total_seconds() // 60:
        return slots

    length = timedelta(minutes=duration)
    step = timedelta(minutes=max(1, min(step_minutes, duration)))
    for window in windows:
        if window.end - window.start < length:
            continue
        start = window.start
        while start + length <= window.end:
            slots.append((TimeInterval(start, start + length), window))
            start += step
    return slots


def drop_busy_slots(
    slots: List[tuple[TimeInterval, TimeInterval]],
    busy: List[TimeInterval],
    buffer_minutes: int = 0,
) -> List[tuple[TimeInterval, TimeInterval]]:
    """
    Remove slots that overlap a busy interval, honoring the buffer.

    Slots must be in start order; busy must be merged.
    """
    buffer = timedelta(minutes=buffer_minutes)
    free = []
    pointer = 0
    for slot, window in slots:
        # Busy intervals ending a full buffer before this slot can't affect later ones
        while pointer < len(busy) and busy[pointer].end + buffer <= slot.start:
            pointer += 1
        index = pointer
        blocked = False
        while index < len(busy) and busy[index].start < slot.end + buffer:
            if overlaps(slot, busy[index], buffer_minutes):
                blocked = True
                break
            index += 1
        if not blocked:
            free.append((slot, window))
    return free


def project_local_times(
    slot: TimeInterval, participants: List[Participant]
) -> List[ParticipantLocalTime]:
    projected = []
    for participant in participants:
        tz = pytz.timezone(participant.timezone)
        projected.append(
            ParticipantLocalTime(
                user_id=participant.user_id,
                calendar_id=participant.calendar_id,
                timezone=participant.timezone,
                local_time=LocalTime(
                    start=slot.start.astimezone(tz).isoformat(),
                    end=slot.end.astimezone(tz).isoformat(),
                ),
            )
        )
    return projected


class AvailabilityFinder:
    """Finds and ranks meeting slots free for every required participant."""

    def __init__(
        self,
        provider: CalendarDataProvider,
        max_concurrency: int = 5,
        slot_step_minutes: int = 15,
    ):
        self.provider = provider
        self.max_concurrency = max_concurrency
        self.slot_step_minutes = slot_step_minutes

    async def find_availability(
        self, request: AvailabilityRequest, now: Optional[datetime] = None
    ) -> AvailabilityResponse:
        """
        Search the request's date range for ranked slots.

        Args:
            request: Participants, range, duration and preferences
            now: Origin for the proximity score. Defaults to the range start.

        Raises:
            NoParticipantsError, InvalidDurationError, InvalidRangeError before
            any calendar data is read.
        """
        if not request.participants:
            raise NoParticipantsError()
        if request.duration <= 0:
            raise InvalidDurationError(request.duration)
        range_start = ensure_utc(request.date_range.start)
        range_end = ensure_utc(request.date_range.end)
        if range_start >= range_end:
            raise InvalidRangeError(
                "date_range.start must be before date_range.end", field="date_range"
            )
        search_range = TimeInterval(range_start, range_end)

        required = [p for p in request.participants if p.is_required]
        busy, failed_participants = await self._fetch_busy(
            required, padded(search_range, request.buffer_minutes)
        )

        windows = mutual_windows(required, search_range)
        slots = candidate_slots(windows, request.duration, self.slot_step_minutes)
        free = drop_busy_slots(slots, busy, request.buffer_minutes)

        reference_tz = pytz.timezone(required[0].timezone) if required else pytz.utc
        origin = ensure_utc(now) if now is not None else range_start
        preferences = request.preferences
        min_score = preferences.min_quality_score if preferences else None

        ranked = []
        for slot, window in free:
            at_edge = slot.start == window.start or slot.end == window.end
            score, breakdown = score_slot(
                slot.start, origin, reference_tz, preferences, at_window_edge=at_edge
            )
            if min_score is not None and score < min_score:
                continue
            ranked.append((score, slot, breakdown))

        ranked.sort(key=lambda item: (-item[0], item[1].start))
        ranked = ranked[: request.limit]

        logger.info(
            "Availability search completed",
            participants=len(request.participants),
            required_participants=len(required),
            failed_participants=len(failed_participants),
            mutual_windows=len(windows),
            candidate_slots=len(slots),
            free_slots=len(free),
            returned_slots=len(ranked),
        )

        return AvailabilityResponse(
            slots=[
                AvailableSlot(
                    start=slot.start,
                    end=slot.end,
                    score=score,
                    score_breakdown=breakdown,
                    participants=project_local_times(slot, request.participants),
                )
                for score, slot, breakdown in ranked
            ],
            searched_range=DateRange(start=range_start, end=range_end),
            participant_count=len(request.participants),
            request_duration=request.duration,
            failed_participants=failed_participants or None,
        )

    async def _fetch_busy(
        self, participants: List[Participant], window: TimeInterval
    ) -> tuple[List[TimeInterval], Dict[str, str]]:
        """Merged busy intervals of all participants, plus per-participant failures."""

        async def fetch(participant: Participant) -> FreeBusyResponse:
            return await self.provider.get_free_busy(
                participant.user_id,
                [participant.calendar_id],
                window.start,
                window.end,
            )

        results = await gather_bounded(
            participants,
            fetch,
            self.max_concurrency,
            unit="participant",
            label=lambda p: p.key,
        )

        busy: List[TimeInterval] = []
        failed: Dict[str, str] = {}
        for result in results:
            participant = result.key
            if not result.ok:
                failed[participant.key] = result.error
                continue
            calendar = result.value.calendars.get(participant.calendar_id)
            if calendar is None:
                continue
            if calendar.errors:
                reason = str(calendar.errors[0].get("reason", "unknown"))
                logger.warning(
                    "Free/busy returned errors for calendar",
                    user_id=participant.user_id,
                    calendar_id=participant.calendar_id,
                    reason=reason,
                )
                failed[participant.key] = reason
                continue
            for period in calendar.busy:
                start, end = ensure_utc(period.start), ensure_utc(period.end)
                if start < end:
                    busy.append(TimeInterval(start, end))
        return merge_intervals(busy), failed
