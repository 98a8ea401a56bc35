"""
Validation tests for the scheduling request schemas.
"""

import pytest
from pydantic import ValidationError

from services.scheduling.schemas.availability import (
    DayHours,
    Participant,
    TimePreferences,
    WorkingHours,
)
from services.scheduling.schemas.conflicts import ConflictCheckRequest


class TestWorkingHoursSchema:
    def test_valid_working_hours(self):
        hours = WorkingHours(
            timezone="America/Chicago",
            days={"Monday": {"start": "08:30", "end": "16:00"}},
        )
        assert hours.for_weekday(0) == DayHours(start="08:30", end="16:00")
        assert hours.for_weekday(1) is None
        assert hours.days["monday"].start_minutes == 510

    def test_unknown_timezone(self):
        with pytest.raises(ValidationError):
            WorkingHours(timezone="Atlantis/Capital", days={})

    def test_unknown_day_name(self):
        with pytest.raises(ValidationError):
            WorkingHours(timezone="UTC", days={"funday": {"start": "09:00", "end": "17:00"}})

    @pytest.mark.parametrize(
        "start,end",
        [("17:00", "09:00"), ("09:00", "09:00"), ("9:00", "17:00"), ("09:00", "24:30")],
    )
    def test_invalid_day_hours(self, start, end):
        with pytest.raises(ValidationError):
            DayHours(start=start, end=end)

    def test_midnight_end_allowed(self):
        assert DayHours(start="00:00", end="24:00").end_minutes == 24 * 60


class TestParticipantSchema:
    def test_defaults(self):
        person = Participant(user_id="u1", calendar_id="primary")
        assert person.is_required is True
        assert person.timezone == "UTC"
        assert person.key == "u1/primary"

    def test_timezone_from_working_hours(self):
        person = Participant(
            user_id="u1",
            calendar_id="primary",
            working_hours={"timezone": "Asia/Tokyo", "days": {}},
        )
        assert person.timezone == "Asia/Tokyo"


class TestPreferencesSchema:
    @pytest.mark.parametrize("days", [[0], [8], [1, 9]])
    def test_weekday_numbers_out_of_range(self, days):
        with pytest.raises(ValidationError):
            TimePreferences(preferred_days=days)
        with pytest.raises(ValidationError):
            TimePreferences(avoid_days=days)

    def test_min_quality_score_range(self):
        with pytest.raises(ValidationError):
            TimePreferences(min_quality_score=1.5)


class TestConflictCheckRequestSchema:
    def test_negative_buffer_rejected(self):
        with pytest.raises(ValidationError):
            ConflictCheckRequest(
                start={"dateTime": "2024-01-15T10:00:00Z"},
                end={"dateTime": "2024-01-15T11:00:00Z"},
                buffer_minutes=-5,
            )

    def test_defaults(self):
        request = ConflictCheckRequest(
            start={"dateTime": "2024-01-15T10:00:00Z"},
            end={"dateTime": "2024-01-15T11:00:00Z"},
        )
        assert request.buffer_minutes == 0
        assert request.check_all_day_events is True
        assert request.calendar_ids is None
