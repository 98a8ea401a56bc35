"""
Read-only calendar data interface consumed by the scheduling engines.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from services.scheduling.schemas.calendar import (
    CalendarListResponse,
    EventListResponse,
    FreeBusyResponse,
)


class CalendarDataProvider(ABC):
    """
    Source of calendars, events and free/busy data.

    Implementations raise on failure; the engines isolate failures per
    calendar or participant.
    """

    @abstractmethod
    async def list_calendars(self, user_id: str) -> CalendarListResponse:
        """List the calendars visible to a user."""

    @abstractmethod
    async def list_events(
        self,
        user_id: str,
        calendar_id: str,
        time_min: datetime,
        time_max: datetime,
        single_events: bool = True,
    ) -> EventListResponse:
        """
        List events of one calendar intersecting [time_min, time_max).

        With single_events, recurring events arrive expanded into instances.
        """

    @abstractmethod
    async def get_free_busy(
        self,
        user_id: str,
        calendar_ids: List[str],
        time_min: datetime,
        time_max: datetime,
    ) -> FreeBusyResponse:
        """Busy periods per calendar for [time_min, time_max)."""
