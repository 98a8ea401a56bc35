"""
Tests for the availability finder.

2024-01-15 is a Monday; Los Angeles is UTC-8 and New York UTC-5 in January.
"""

from datetime import timedelta

import pytest
import pytz

from services.scheduling.core.availability_finder import (
    AvailabilityFinder,
    candidate_slots,
    drop_busy_slots,
)
from services.scheduling.core.exceptions import (
    InvalidDurationError,
    InvalidRangeError,
    NoParticipantsError,
)
from services.scheduling.core.intervals import TimeInterval, overlaps
from services.scheduling.schemas.availability import (
    AvailabilityRequest,
    DateRange,
    TimeOfDay,
    TimePreferences,
)
from services.scheduling.tests.scheduling_test_base import (
    office_hours,
    participant,
    utc,
)

LA = pytz.timezone("America/Los_Angeles")

# Monday 2024-01-15, midnight to midnight Pacific time
MONDAY_START = utc(2024, 1, 15, 8)
MONDAY_END = utc(2024, 1, 16, 8)


def monday_request(participants, duration=30, **fields) -> AvailabilityRequest:
    return AvailabilityRequest(
        participants=participants,
        date_range=DateRange(start=MONDAY_START, end=MONDAY_END),
        duration=duration,
        **fields,
    )


@pytest.fixture
def finder(provider):
    return AvailabilityFinder(provider)


@pytest.fixture
def la_participant():
    return participant("user-1", "primary", office_hours("America/Los_Angeles"))


class TestFindAvailability:
    @pytest.mark.asyncio
    async def test_free_calendar_within_working_hours(self, finder, la_participant):
        result = await finder.find_availability(
            monday_request([la_participant], limit=50)
        )

        assert len(result.slots) >= 1
        for slot in result.slots:
            assert slot.end - slot.start == timedelta(minutes=30)
            local_start = slot.start.astimezone(LA)
            local_end = slot.end.astimezone(LA)
            assert local_start.date() == local_end.date()
            assert (local_start.hour, local_start.minute) >= (9, 0)
            assert (local_end.hour, local_end.minute) <= (17, 0)

        # 09:00 to 16:30 every 15 minutes
        assert len(result.slots) == 31
        assert result.participant_count == 1
        assert result.request_duration == 30
        assert result.failed_participants is None

    @pytest.mark.asyncio
    async def test_busy_afternoon_is_avoided(self, finder, provider, la_participant):
        busy = TimeInterval(utc(2024, 1, 15, 22), utc(2024, 1, 15, 23))  # 14:00-15:00 PT
        provider.add_busy("primary", busy.start, busy.end)

        result = await finder.find_availability(
            monday_request([la_participant], duration=60, limit=50)
        )

        assert result.slots
        for slot in result.slots:
            assert not overlaps(TimeInterval(slot.start, slot.end), busy)

    @pytest.mark.asyncio
    async def test_buffer_keeps_slots_away_from_busy_time(
        self, finder, provider, la_participant
    ):
        busy = TimeInterval(utc(2024, 1, 15, 22), utc(2024, 1, 15, 23))
        provider.add_busy("primary", busy.start, busy.end)

        result = await finder.find_availability(
            monday_request([la_participant], duration=30, buffer_minutes=15, limit=50)
        )

        starts = {slot.start for slot in result.slots}
        for slot in result.slots:
            assert not overlaps(TimeInterval(slot.start, slot.end), busy, 15)
        assert utc(2024, 1, 15, 21, 15) in starts
        assert utc(2024, 1, 15, 21, 30) not in starts
        assert utc(2024, 1, 15, 23, 15) in starts

    @pytest.mark.asyncio
    async def test_fully_busy_day_returns_no_slots(self, finder, provider, la_participant):
        provider.add_busy("primary", MONDAY_START, MONDAY_END)

        result = await finder.find_availability(monday_request([la_participant]))

        assert result.slots == []
        assert result.failed_participants is None

    @pytest.mark.asyncio
    async def test_weekend_without_working_hours_has_no_slots(
        self, finder, la_participant
    ):
        saturday = AvailabilityRequest(
            participants=[la_participant],
            date_range=DateRange(start=utc(2024, 1, 20, 8), end=utc(2024, 1, 21, 8)),
            duration=30,
        )

        result = await finder.find_availability(saturday)

        assert result.slots == []

    @pytest.mark.asyncio
    async def test_non_working_day_of_one_participant_removes_the_day(
        self, finder, la_participant
    ):
        part_timer = participant(
            "user-2",
            "cal-2",
            office_hours("America/Los_Angeles", days=["tuesday", "wednesday"]),
        )

        result = await finder.find_availability(
            monday_request([la_participant, part_timer])
        )

        assert result.slots == []

    @pytest.mark.asyncio
    async def test_participants_in_different_timezones(self, finder, la_participant):
        new_yorker = participant("user-2", "cal-2", office_hours("America/New_York"))

        result = await finder.find_availability(
            monday_request([la_participant, new_yorker], limit=50)
        )

        # LA 09:00-17:00 is 17:00-01:00 UTC; New York 09:00-17:00 is 14:00-22:00 UTC
        assert result.slots
        for slot in result.slots:
            assert slot.start >= utc(2024, 1, 15, 17)
            assert slot.end <= utc(2024, 1, 15, 22)
        assert len(result.slots) == 19

    @pytest.mark.asyncio
    async def test_participant_without_working_hours_is_available_all_range(
        self, finder
    ):
        request = AvailabilityRequest(
            participants=[participant("user-1", "primary")],
            date_range=DateRange(start=utc(2024, 1, 15, 15), end=utc(2024, 1, 15, 17)),
            duration=60,
        )

        result = await finder.find_availability(request)

        assert sorted(slot.start for slot in result.slots) == [
            utc(2024, 1, 15, 15),
            utc(2024, 1, 15, 15, 15),
            utc(2024, 1, 15, 15, 30),
            utc(2024, 1, 15, 15, 45),
            utc(2024, 1, 15, 16),
        ]

    @pytest.mark.asyncio
    async def test_optional_participant_does_not_constrain(
        self, finder, provider, la_participant
    ):
        optional = participant(
            "user-2", "cal-2", office_hours("Europe/London"), is_required=False
        )
        provider.add_busy("cal-2", MONDAY_START, MONDAY_END)

        result = await finder.find_availability(
            monday_request([la_participant, optional], limit=50)
        )

        assert len(result.slots) == 31
        fetched = [call[2] for call in provider.calls if call[0] == "get_free_busy"]
        assert fetched == [("primary",)]
        projected = result.slots[0].participants
        assert [p.user_id for p in projected] == ["user-1", "user-2"]
        assert projected[1].timezone == "Europe/London"

    @pytest.mark.asyncio
    async def test_only_optional_participants_yields_no_slots(self, finder, provider):
        optional = participant(
            "user-1", "primary", office_hours("America/Los_Angeles"), is_required=False
        )
        sunday_start, sunday_end = utc(2024, 1, 14, 8), utc(2024, 1, 15, 8)
        provider.add_busy("primary", sunday_start, sunday_end)

        result = await finder.find_availability(
            AvailabilityRequest(
                participants=[optional],
                date_range=DateRange(start=sunday_start, end=sunday_end),
                duration=30,
                limit=50,
            )
        )

        assert result.slots == []
        assert result.participant_count == 1
        assert not [call for call in provider.calls if call[0] == "get_free_busy"]

    @pytest.mark.asyncio
    async def test_duration_longer_than_range_yields_no_slots(
        self, finder, la_participant
    ):
        result = await finder.find_availability(
            monday_request([la_participant], duration=5_000_000_000)
        )

        assert result.slots == []
        assert result.request_duration == 5_000_000_000

    @pytest.mark.asyncio
    async def test_failed_participant_degrades_to_no_busy_data(
        self, finder, provider, la_participant
    ):
        other = participant("user-2", "cal-2")
        provider.failing_calendars.add("cal-2")

        result = await finder.find_availability(
            monday_request([la_participant, other], limit=50)
        )

        assert len(result.slots) == 31
        assert list(result.failed_participants) == ["user-2/cal-2"]

    @pytest.mark.asyncio
    async def test_free_busy_errors_are_reported(
        self, finder, provider, la_participant
    ):
        provider.free_busy_errors["primary"] = [
            {"domain": "global", "reason": "notFound"}
        ]

        result = await finder.find_availability(monday_request([la_participant]))

        assert result.failed_participants == {"user-1/primary": "notFound"}
        assert result.slots

    @pytest.mark.asyncio
    async def test_free_busy_window_includes_buffer(
        self, finder, provider, la_participant
    ):
        await finder.find_availability(
            monday_request([la_participant], buffer_minutes=10)
        )

        _, user_id, calendars, time_min, time_max = provider.calls[0]
        assert user_id == "user-1"
        assert calendars == ("primary",)
        assert time_min == MONDAY_START - timedelta(minutes=10)
        assert time_max == MONDAY_END + timedelta(minutes=10)


class TestRanking:
    @pytest.mark.asyncio
    async def test_slots_sorted_by_score_then_start(self, finder, la_participant):
        result = await finder.find_availability(
            monday_request([la_participant], limit=50)
        )

        keys = [(-slot.score, slot.start) for slot in result.slots]
        assert keys == sorted(keys)
        for slot in result.slots:
            assert 0.0 <= slot.score <= 1.0
            breakdown = slot.score_breakdown
            for value in (
                breakdown.time_of_day,
                breakdown.day_of_week,
                breakdown.proximity,
                breakdown.quality,
            ):
                assert 0.0 <= value <= 1.0

    @pytest.mark.asyncio
    async def test_limit_truncates(self, finder, la_participant):
        result = await finder.find_availability(monday_request([la_participant], limit=3))
        assert len(result.slots) == 3

    @pytest.mark.asyncio
    async def test_default_limit(self, finder, la_participant):
        result = await finder.find_availability(monday_request([la_participant]))
        assert len(result.slots) == 10

    @pytest.mark.asyncio
    async def test_min_quality_score_filters(self, finder, la_participant):
        preferences = TimePreferences(
            preferred_time_of_day=TimeOfDay.AFTERNOON, min_quality_score=0.95
        )

        result = await finder.find_availability(
            monday_request([la_participant], preferences=preferences, limit=50)
        )

        assert result.slots
        assert all(slot.score >= 0.95 for slot in result.slots)
        for slot in result.slots:
            assert 13 <= slot.start.astimezone(LA).hour < 17

    @pytest.mark.asyncio
    async def test_morning_preference_ranks_morning_first(self, finder, la_participant):
        preferences = TimePreferences(preferred_time_of_day=TimeOfDay.MORNING)

        result = await finder.find_availability(
            monday_request([la_participant], preferences=preferences)
        )

        best = result.slots[0].start.astimezone(LA)
        assert 8 <= best.hour < 12
        assert result.slots[0].score_breakdown.time_of_day == 1.0

    @pytest.mark.asyncio
    async def test_window_edges_score_lower_quality(self, finder, la_participant):
        result = await finder.find_availability(
            monday_request([la_participant], limit=50)
        )

        by_start = {slot.start: slot for slot in result.slots}
        assert by_start[utc(2024, 1, 15, 17)].score_breakdown.quality == 0.8
        assert by_start[utc(2024, 1, 16, 0, 30)].score_breakdown.quality == 0.8
        assert by_start[utc(2024, 1, 15, 18)].score_breakdown.quality == 1.0

    @pytest.mark.asyncio
    async def test_local_times_projected_with_offset(self, finder, la_participant):
        result = await finder.find_availability(
            monday_request([la_participant], limit=50)
        )

        by_start = {slot.start: slot for slot in result.slots}
        local = by_start[utc(2024, 1, 15, 17)].participants[0]
        assert local.user_id == "user-1"
        assert local.calendar_id == "primary"
        assert local.timezone == "America/Los_Angeles"
        assert local.local_time.start == "2024-01-15T09:00:00-08:00"
        assert local.local_time.end == "2024-01-15T09:30:00-08:00"


class TestValidation:
    @pytest.mark.asyncio
    async def test_no_participants(self, finder, provider):
        with pytest.raises(NoParticipantsError):
            await finder.find_availability(monday_request([]))
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_negative_duration(self, finder, provider, la_participant):
        with pytest.raises(InvalidDurationError):
            await finder.find_availability(monday_request([la_participant], duration=-30))
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_range_start_after_end(self, finder, provider, la_participant):
        request = AvailabilityRequest(
            participants=[la_participant],
            date_range=DateRange(start=MONDAY_END, end=MONDAY_START),
            duration=30,
        )
        with pytest.raises(InvalidRangeError):
            await finder.find_availability(request)
        assert provider.calls == []

    def test_limit_is_clamped(self, la_participant):
        assert monday_request([la_participant], limit=500).limit == 50
        assert monday_request([la_participant], limit=0).limit == 1


class TestSlotHelpers:
    def test_step_never_exceeds_duration(self):
        window = TimeInterval(utc(2024, 1, 15, 9), utc(2024, 1, 15, 10))
        slots = candidate_slots([window], duration=10, step_minutes=15)
        assert [slot.start for slot, _ in slots][:3] == [
            utc(2024, 1, 15, 9),
            utc(2024, 1, 15, 9, 10),
            utc(2024, 1, 15, 9, 20),
        ]
        assert all(slot.end <= window.end for slot, _ in slots)

    def test_window_shorter_than_duration_has_no_slots(self):
        window = TimeInterval(utc(2024, 1, 15, 9), utc(2024, 1, 15, 9, 20))
        assert candidate_slots([window], duration=30, step_minutes=15) == []

    def test_huge_duration_has_no_slots(self):
        window = TimeInterval(utc(2024, 1, 15, 9), utc(2024, 1, 16, 9))
        assert candidate_slots([window], duration=10**18, step_minutes=15) == []
        assert candidate_slots([], duration=30, step_minutes=15) == []

    def test_drop_busy_slots(self):
        window = TimeInterval(utc(2024, 1, 15, 9), utc(2024, 1, 15, 12))
        slots = candidate_slots([window], duration=60, step_minutes=60)
        busy = [TimeInterval(utc(2024, 1, 15, 10), utc(2024, 1, 15, 10, 30))]

        free = drop_busy_slots(slots, busy)

        assert [slot.start for slot, _ in free] == [
            utc(2024, 1, 15, 9),
            utc(2024, 1, 15, 11),
        ]
