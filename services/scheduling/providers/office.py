"""
Calendar data provider backed by the office service HTTP API.
"""

import time
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from services.common.http_errors import ErrorCode, ProviderError
from services.common.logging_config import get_logger, request_id_var
from services.scheduling.providers.base import CalendarDataProvider
from services.scheduling.schemas.calendar import (
    CalendarListResponse,
    EventListResponse,
    FreeBusyResponse,
)

logger = get_logger(__name__)

PROVIDER_NAME = "office"


class OfficeCalendarProvider(CalendarDataProvider):
    """
    Reads calendars, events and free/busy data from the office service.

    Every call opens a short-lived httpx.AsyncClient and authenticates with the
    scheduling service's API key. The acting user goes in X-User-Id.
    """

    def __init__(self, base_url: str, api_key: str, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _headers(self, user_id: str) -> Dict[str, str]:
        headers = {"X-API-Key": self.api_key, "X-User-Id": user_id}

        # Propagate request ID for distributed tracing
        request_id = request_id_var.get()
        if request_id and request_id != "uninitialized":
            headers["X-Request-Id"] = request_id
        else:
            headers["X-Request-Id"] = str(uuid.uuid4())
        return headers

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        user_id: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Call the office service and return the unwrapped response payload.

        Raises:
            ProviderError: On timeouts, transport failures, HTTP errors and
                unreadable bodies.
        """
        url = f"{self.base_url}{endpoint}"
        headers = self._headers(user_id)
        start_time = time.time()

        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
                response = await client.request(
                    method, url, params=params, json=json_data, headers=headers
                )
                response.raise_for_status()
                payload = response.json()

        except httpx.TimeoutException as e:
            response_time_ms = int((time.time() - start_time) * 1000)
            logger.error(
                "Office service request timed out",
                endpoint=endpoint,
                user_id=user_id,
                timeout_ms=response_time_ms,
            )
            raise ProviderError(
                message=f"Request timeout after {response_time_ms}ms",
                provider=PROVIDER_NAME,
                code=ErrorCode.PROVIDER_UNAVAILABLE,
                details={"endpoint": endpoint, "method": method.upper()},
            ) from e

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            retry_after = None
            if status_code == 429:
                retry_after_header = e.response.headers.get("Retry-After")
                if retry_after_header and retry_after_header.isdigit():
                    retry_after = int(retry_after_header)

            logger.error(
                "Office service returned an error",
                endpoint=endpoint,
                user_id=user_id,
                status_code=status_code,
            )
            raise ProviderError(
                message=f"Office service returned HTTP {status_code}",
                provider=PROVIDER_NAME,
                code=(
                    ErrorCode.PROVIDER_UNAVAILABLE
                    if status_code in (502, 503, 504)
                    else ErrorCode.PROVIDER_ERROR
                ),
                details={"endpoint": endpoint, "status_code": status_code},
                response_body=e.response.text[:500],
                retry_after=retry_after,
            ) from e

        except httpx.RequestError as e:
            logger.error(
                "Office service request failed",
                endpoint=endpoint,
                user_id=user_id,
                error=str(e),
            )
            raise ProviderError(
                message=f"Could not reach office service: {e}",
                provider=PROVIDER_NAME,
                code=ErrorCode.PROVIDER_UNAVAILABLE,
                details={"endpoint": endpoint, "method": method.upper()},
            ) from e

        except ValueError as e:
            raise ProviderError(
                message="Office service returned an unreadable response",
                provider=PROVIDER_NAME,
                details={"endpoint": endpoint},
            ) from e

        logger.debug(
            "Office service request completed",
            endpoint=endpoint,
            user_id=user_id,
            response_time_ms=int((time.time() - start_time) * 1000),
        )

        # Office endpoints wrap their payload in {"success", "data", ...}
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            return payload["data"]
        if not isinstance(payload, dict):
            raise ProviderError(
                message="Office service returned an unexpected payload",
                provider=PROVIDER_NAME,
                details={"endpoint": endpoint},
            )
        return payload

    async def list_calendars(self, user_id: str) -> CalendarListResponse:
        data = await self._make_request("GET", "/v1/calendar/calendars", user_id)
        return CalendarListResponse.model_validate(data)

    async def list_events(
        self,
        user_id: str,
        calendar_id: str,
        time_min: datetime,
        time_max: datetime,
        single_events: bool = True,
    ) -> EventListResponse:
        params = {
            "calendar_id": calendar_id,
            "time_min": time_min.isoformat(),
            "time_max": time_max.isoformat(),
            "single_events": "true" if single_events else "false",
        }
        data = await self._make_request(
            "GET", "/v1/calendar/events", user_id, params=params
        )
        return EventListResponse.model_validate(data)

    async def get_free_busy(
        self,
        user_id: str,
        calendar_ids: List[str],
        time_min: datetime,
        time_max: datetime,
    ) -> FreeBusyResponse:
        body = {
            "calendar_ids": calendar_ids,
            "time_min": time_min.isoformat(),
            "time_max": time_max.isoformat(),
        }
        data = await self._make_request(
            "POST", "/v1/calendar/freebusy", user_id, json_data=body
        )
        return FreeBusyResponse.model_validate(data)
