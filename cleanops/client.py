"""
HTTP client for the operations API.

Used by the dashboard-side models (availability checks, calendar board, booking
wizard). Non-2xx responses raise ApiError carrying the server's `error` message;
transport failures surface as httpx.HTTPError.
"""

import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from .domain.scheduling.windows import ScheduledJob
from .shared.timeutils import isoformat

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-success response from the operations API"""

    def __init__(self, status_code: int, message: str, payload: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}

    @property
    def code(self) -> Optional[str]:
        """Conflict code such as duplicate_job or past_date, when present"""
        return self.payload.get("code")

    @property
    def override(self) -> Optional[str]:
        return self.payload.get("override")

    @property
    def is_conflict(self) -> bool:
        return self.status_code == 409


class OperationsClient:
    """Thin wrapper over httpx.Client; pass `http_client` to reuse a configured client"""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        http_client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self.http = http_client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self.http.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        response = self.http.request(method, path, **kwargs)
        if response.is_success:
            return response.json() if response.content else None

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        message = payload.get("error") or payload.get("detail") or response.reason_phrase
        logger.warning(f"⚠️ {method} {path} failed: {response.status_code} {message}")
        raise ApiError(response.status_code, str(message), payload)

    # ------------------------------------------------------------------
    # Jobs and scheduling
    # ------------------------------------------------------------------

    def list_jobs(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        customer_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[dict]:
        params: dict[str, Any] = {}
        if start is not None:
            params["startDate"] = isoformat(start)
        if end is not None:
            params["endDate"] = isoformat(end)
        if customer_id is not None:
            params["customerId"] = customer_id
        if status:
            params["status"] = status
        return self._request("GET", "/jobs", params=params)

    def jobs_in_window(self, start: datetime, end: datetime) -> list[ScheduledJob]:
        """Jobs in [start, end] as scheduling records, for availability checks"""
        return [ScheduledJob.from_payload(job) for job in self.list_jobs(start, end)]

    def availability(
        self, start: datetime, duration_minutes: Optional[int] = None, exclude_job_id: Optional[int] = None
    ) -> dict:
        params: dict[str, Any] = {"start": isoformat(start)}
        if duration_minutes is not None:
            params["durationMinutes"] = duration_minutes
        if exclude_job_id is not None:
            params["excludeJobId"] = exclude_job_id
        return self._request("GET", "/scheduling/availability", params=params)

    def calendar(self, start: datetime, end: datetime, employee_id: Optional[int] = None) -> dict:
        params: dict[str, Any] = {"start": isoformat(start), "end": isoformat(end)}
        if employee_id is not None:
            params["employeeId"] = employee_id
        return self._request("GET", "/jobs/calendar", params=params)

    def create_job(self, payload: dict) -> dict:
        return self._request("POST", "/jobs", json=payload)

    def reschedule_job(
        self,
        job_id: int,
        new_date: datetime,
        new_end_date: Optional[datetime] = None,
        reason: Optional[str] = None,
    ) -> dict:
        body = {"newDate": isoformat(new_date), "newEndDate": isoformat(new_end_date), "reason": reason}
        return self._request("POST", f"/jobs/{job_id}/reschedule", json=body)

    def assign_job(self, job_id: int, employee_id: int, send_notification: bool = True) -> dict:
        body = {"employeeId": employee_id, "sendNotification": send_notification}
        return self._request("POST", f"/jobs/{job_id}/assign", json=body)

    # ------------------------------------------------------------------
    # Bookings, verification, reporting
    # ------------------------------------------------------------------

    def create_booking_request(self, payload: dict) -> dict:
        return self._request("POST", "/booking-requests", json=payload)

    def verify_photo(self, photo_id: int, status: str, rejection_reason: Optional[str] = None) -> dict:
        body = {"status": status, "rejectionReason": rejection_reason}
        return self._request("PATCH", f"/photos/{photo_id}/verify", json=body)

    def bulk_verify(self, photo_ids: list[int], status: str, rejection_reason: Optional[str] = None) -> dict:
        body = {"photoIds": list(photo_ids), "status": status, "rejectionReason": rejection_reason}
        return self._request("POST", "/photos/bulk-verify", json=body)

    def verification_center(self, employee_id: Optional[int] = None) -> dict:
        params = {"employeeId": employee_id} if employee_id is not None else {}
        return self._request("GET", "/verification-center", params=params)

    def profitability(self, start: datetime, end: datetime, **filters) -> dict:
        params: dict[str, Any] = {"startDate": isoformat(start), "endDate": isoformat(end)}
        params.update({k: v for k, v in filters.items() if v is not None})
        return self._request("GET", "/profitability", params=params)
