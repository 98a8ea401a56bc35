"""
Scheduling intelligence endpoints.

User identity comes from the X-User-Id header set by the gateway. Both
endpoints only read calendar data.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from services.common.http_errors import AuthError, ErrorCode, ValidationError
from services.common.logging_config import get_logger, request_id_var
from services.scheduling.core.auth import service_permission_required
from services.scheduling.core.availability_finder import AvailabilityFinder
from services.scheduling.core.conflict_detector import ConflictDetector
from services.scheduling.providers.base import CalendarDataProvider
from services.scheduling.providers.office import OfficeCalendarProvider
from services.scheduling.schemas.availability import (
    AvailabilityApiResponse,
    AvailabilityRequest,
)
from services.scheduling.schemas.conflicts import (
    ConflictCheckApiResponse,
    ConflictCheckRequest,
)
from services.scheduling.settings import get_settings

logger = get_logger(__name__)

router = APIRouter(prefix="/calendar", tags=["calendar"])

_provider: Optional[CalendarDataProvider] = None


def get_calendar_provider() -> CalendarDataProvider:
    """Get or create the shared office-backed calendar data provider."""
    global _provider
    if _provider is None:
        settings = get_settings()
        _provider = OfficeCalendarProvider(
            base_url=settings.office_service_url,
            api_key=settings.api_scheduling_office_key,
            timeout=settings.provider_timeout_seconds,
        )
    return _provider


async def get_user_id_from_gateway(request: Request) -> str:
    user_id = request.headers.get("X-User-Id")
    if not user_id:
        raise ValidationError(message="X-User-Id header is required", field="X-User-Id")
    return user_id


@router.post("/check-conflicts", response_model=ConflictCheckApiResponse)
async def check_conflicts(
    request: ConflictCheckRequest,
    service_name: str = Depends(service_permission_required(["read_calendar"])),
    user_id: str = Depends(get_user_id_from_gateway),
    provider: CalendarDataProvider = Depends(get_calendar_provider),
) -> ConflictCheckApiResponse:
    """
    Check a proposed event time against the user's calendars.

    Calendars that fail to load are listed in failed_calendars instead of
    failing the request.
    """
    settings = get_settings()
    detector = ConflictDetector(
        provider,
        max_concurrency=settings.max_concurrent_fetches,
        suggestion_gap_minutes=settings.suggestion_gap_minutes,
    )
    result = await detector.check_conflicts(user_id, request)

    if result.has_conflicts:
        message = f"Found {len(result.conflicts)} conflict(s)"
    else:
        message = "No conflicts found"

    return ConflictCheckApiResponse(
        success=True,
        data=result,
        message=message,
        request_id=request_id_var.get(),
    )


@router.post("/find-availability", response_model=AvailabilityApiResponse)
async def find_availability(
    request: AvailabilityRequest,
    service_name: str = Depends(service_permission_required(["read_calendar"])),
    user_id: str = Depends(get_user_id_from_gateway),
    provider: CalendarDataProvider = Depends(get_calendar_provider),
) -> AvailabilityApiResponse:
    """
    Find ranked meeting slots free for every required participant.

    The requesting user must be one of the participants.
    """
    if request.participants and not any(
        p.user_id == user_id for p in request.participants
    ):
        logger.warning(
            "Availability search denied for non-participant",
            user_id=user_id,
            participants=len(request.participants),
        )
        raise AuthError(
            message="Requester must be one of the participants",
            code=ErrorCode.ACCESS_DENIED,
            status_code=403,
        )

    settings = get_settings()
    finder = AvailabilityFinder(
        provider,
        max_concurrency=settings.max_concurrent_fetches,
        slot_step_minutes=settings.slot_step_minutes,
    )
    result = await finder.find_availability(request)

    return AvailabilityApiResponse(
        success=True,
        data=result,
        message=f"Found {len(result.slots)} available slot(s)",
        request_id=request_id_var.get(),
    )
