"""
Job time windows.

A job occupies one half-open window [start, end). When a job has no explicit end
the window is start + max(duration, 60) minutes, so an unset or short duration
still blocks a full hour.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from ...shared.timeutils import parse_instant, to_utc

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 60
MIN_PLAN_DURATION_MINUTES = 15

# Statuses that occupy an employee's time
BLOCKING_STATUSES = frozenset({"scheduled", "in-progress"})
JOB_STATUSES = ("pending", "scheduled", "in-progress", "completed", "cancelled", "rejected")


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    def overlaps(self, other: "TimeWindow") -> bool:
        """Half-open intersection: windows that only touch at a boundary do not overlap"""
        return self.start < other.end and self.end > other.start

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def padded(self, minutes: int) -> "TimeWindow":
        pad = timedelta(minutes=minutes)
        return TimeWindow(self.start - pad, self.end + pad)


@dataclass
class ScheduledJob:
    """The scheduling view of a job, independent of where it was loaded from"""

    id: int
    scheduled_for: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    status: str = "scheduled"
    assigned_employee_ids: frozenset = field(default_factory=frozenset)
    title: str = ""

    @classmethod
    def from_model(cls, job) -> "ScheduledJob":
        return cls(
            id=job.id,
            scheduled_for=to_utc(job.scheduled_for) if job.scheduled_for else None,
            scheduled_end=to_utc(job.scheduled_end) if job.scheduled_end else None,
            duration_minutes=job.duration_minutes,
            status=job.status,
            assigned_employee_ids=frozenset(job.assigned_employee_ids),
            title=job.title or "",
        )

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "ScheduledJob":
        """Build from an API job object; unparseable instants become None"""
        assigned = data.get("assignedEmployeeIds")
        if assigned is None:
            assignments = data.get("assignments") or []
            assigned = [a.get("employeeId") for a in assignments if isinstance(a, Mapping)]
            if not assigned and data.get("assignedTo") is not None:
                assigned = [data.get("assignedTo")]
        duration = data.get("durationMinutes")
        return cls(
            id=int(data["id"]),
            scheduled_for=parse_instant(data.get("scheduledFor")),
            scheduled_end=parse_instant(data.get("scheduledEnd")),
            duration_minutes=int(duration) if isinstance(duration, (int, float)) else None,
            status=data.get("status") or "scheduled",
            assigned_employee_ids=frozenset(int(e) for e in assigned if e is not None),
            title=data.get("title") or "",
        )

    def effective_window(self) -> Optional[TimeWindow]:
        if self.scheduled_for is None:
            return None
        start = to_utc(self.scheduled_for)
        if self.scheduled_end is not None:
            return TimeWindow(start, to_utc(self.scheduled_end))
        return TimeWindow(start, start + timedelta(minutes=effective_duration(self.duration_minutes)))

    @property
    def is_blocking(self) -> bool:
        return self.status in BLOCKING_STATUSES


def effective_duration(duration_minutes: Optional[int]) -> int:
    """Length an existing job blocks: its duration with a one-hour floor"""
    return max(duration_minutes or 0, DEFAULT_DURATION_MINUTES)


def candidate_window(start: datetime, duration_minutes: Optional[int]) -> TimeWindow:
    """Window being checked: start plus the requested duration, 60 minutes when none is given"""
    start = to_utc(start)
    minutes = duration_minutes if duration_minutes and duration_minutes > 0 else DEFAULT_DURATION_MINUTES
    return TimeWindow(start, start + timedelta(minutes=minutes))


def parse_duration_minutes(value: Optional[str]) -> int:
    """
    Parse a cleaning plan's free-text estimated duration.

    "2h 30m" -> 150, "1.5h" -> 90, "45m" -> 45, "90" -> 90. Missing or
    unreadable values fall back to 60 minutes; the h/m form never goes below 15.
    """
    if not value:
        return DEFAULT_DURATION_MINUTES
    normalized = str(value).lower()
    hour_match = re.search(r"(\d+(?:\.\d+)?)\s*h", normalized)
    min_match = re.search(r"(\d+(?:\.\d+)?)\s*m", normalized)
    if hour_match or min_match:
        hours = round(float(hour_match.group(1)) * 60) if hour_match else 0
        mins = round(float(min_match.group(1))) if min_match else 0
        return max(MIN_PLAN_DURATION_MINUTES, hours + mins)
    numeric = re.match(r"\s*(\d+)", normalized)
    if numeric and int(numeric.group(1)) > 0:
        return int(numeric.group(1))
    return DEFAULT_DURATION_MINUTES
