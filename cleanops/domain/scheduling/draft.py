"""Create-job dialog state: inline validation, candidate window and request payload"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from ...client import ApiError, OperationsClient
from ...shared.timeutils import isoformat
from ...shared.validators import is_blank
from .availability import AvailabilityResult, check_availability
from .windows import TimeWindow, candidate_window, parse_duration_minutes

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Plan, client address, and assigned staff are required"


class DraftInvalid(ValueError):
    """Required fields missing; raised before any request is made"""


@dataclass
class JobDraft:
    customer_id: Optional[int] = None
    plan_id: Optional[int] = None
    plan_duration: Optional[str] = None  # Plan's free-text estimate, e.g. "2h 30m"
    title: str = ""
    location: str = ""
    scheduled_for: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    assigned_employee_ids: list[int] = field(default_factory=list)
    pay_amounts: dict[int, float] = field(default_factory=dict)
    notes: Optional[str] = None
    allow_duplicate: bool = False
    allow_past: bool = False
    back_create_complete: bool = False
    availability: AvailabilityResult = field(default_factory=AvailabilityResult)

    @property
    def effective_duration_minutes(self) -> int:
        if self.duration_minutes:
            return self.duration_minutes
        return parse_duration_minutes(self.plan_duration)

    def missing_fields(self) -> list[str]:
        missing = []
        if self.plan_id is None:
            missing.append("plan")
        if is_blank(self.location):
            missing.append("location")
        if not self.assigned_employee_ids:
            missing.append("assignedEmployeeIds")
        if self.customer_id is None:
            missing.append("customer")
        if self.scheduled_for is None:
            missing.append("scheduledFor")
        return missing

    def validate(self) -> None:
        missing = self.missing_fields()
        if missing:
            raise DraftInvalid(REQUIRED_FIELDS_MESSAGE)

    def candidate_window(self) -> Optional[TimeWindow]:
        if self.scheduled_for is None:
            return None
        return candidate_window(self.scheduled_for, self.effective_duration_minutes)

    def refresh_availability(self, fetch_jobs: Callable, employee_ids: list[int]) -> AvailabilityResult:
        """Recompute availability for the current start and duration"""
        if self.scheduled_for is None:
            self.availability = AvailabilityResult()
        else:
            self.availability = check_availability(
                fetch_jobs, self.scheduled_for, self.effective_duration_minutes, employee_ids
            )
        return self.availability

    def busy_assignees(self) -> list[int]:
        window = self.candidate_window()
        if window is None or not self.availability.is_valid_for(window):
            return []
        busy = self.availability.busy_ids()
        return [eid for eid in self.assigned_employee_ids if eid in busy]

    def to_payload(self) -> dict:
        return {
            "customerId": self.customer_id,
            "planId": self.plan_id,
            "title": self.title or None,
            "location": self.location,
            "scheduledFor": isoformat(self.scheduled_for),
            "durationMinutes": self.effective_duration_minutes,
            "assignments": [
                {"employeeId": eid, "payAmount": self.pay_amounts.get(eid)} for eid in self.assigned_employee_ids
            ],
            "notes": self.notes,
            "allowDuplicate": self.allow_duplicate,
            "allowPast": self.allow_past,
            "backCreateComplete": self.back_create_complete,
        }

    def submit(self, client: OperationsClient) -> dict:
        """
        Validate and post the job.

        Conflicts (duplicate, past date, pay amount) propagate as ApiError with a
        code and override flag; the caller sets the flag after confirmation and
        submits again.
        """
        self.validate()
        try:
            return client.create_job(self.to_payload())
        except ApiError as e:
            if e.is_conflict:
                logger.info(f"ℹ️ Job creation needs confirmation: {e.code}")
            raise

    def apply_override(self, override: Optional[str]) -> None:
        if override == "allowDuplicate":
            self.allow_duplicate = True
        elif override == "allowPast":
            self.allow_past = True
        elif override == "backCreateComplete":
            self.back_create_complete = True
