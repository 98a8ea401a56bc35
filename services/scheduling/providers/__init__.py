from services.scheduling.providers.base import CalendarDataProvider
from services.scheduling.providers.office import OfficeCalendarProvider

__all__ = ["CalendarDataProvider", "OfficeCalendarProvider"]
