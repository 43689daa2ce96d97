"""
Staff availability for a candidate job window.

Availability is never stored: it is recomputed from the jobs overlapping the
candidate window each time the candidate date, time or duration changes. The
result is advisory only; the backend does not lock slots.
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, Optional

from .windows import ScheduledJob, TimeWindow, candidate_window

logger = logging.getLogger(__name__)


class Availability(str, enum.Enum):
    AVAILABLE = "available"
    BUSY = "busy"


# Fetches jobs whose schedule falls inside [start, end]
JobFetcher = Callable[[datetime, datetime], Iterable[ScheduledJob]]


@dataclass
class AvailabilityResult:
    """Per-employee classification, valid only for the window it was computed against"""

    window: Optional[TimeWindow] = None
    statuses: dict[int, Availability] = field(default_factory=dict)

    @property
    def is_known(self) -> bool:
        return bool(self.statuses)

    def status_for(self, employee_id: int) -> Optional[Availability]:
        """None means unknown: the check failed or has not run for this window"""
        return self.statuses.get(employee_id)

    def busy_ids(self) -> set[int]:
        return {eid for eid, status in self.statuses.items() if status is Availability.BUSY}

    def is_valid_for(self, window: TimeWindow) -> bool:
        return self.window == window

    def label_for(self, employee_id: int, loading: bool = False) -> str:
        """Text shown next to an employee in the assignment pickers"""
        if self.window is None:
            return "Pick a date and time"
        status = self.status_for(employee_id)
        if loading or status is None:
            return "Checking..."
        return "Busy" if status is Availability.BUSY else "Available"

    def to_dict(self) -> dict[str, str]:
        return {str(eid): status.value for eid, status in self.statuses.items()}


def busy_employee_ids(
    window: TimeWindow,
    jobs: Iterable[ScheduledJob],
    exclude_job_id: Optional[int] = None,
) -> set[int]:
    busy: set[int] = set()
    for job in jobs:
        if exclude_job_id is not None and job.id == exclude_job_id:
            continue
        if not job.is_blocking or not job.assigned_employee_ids:
            continue
        job_window = job.effective_window()
        if job_window is None:
            # Unscheduled or unparseable start: cannot block anyone
            logger.warning(f"⚠️ Job {job.id} has no valid schedule; ignored for availability")
            continue
        if window.overlaps(job_window):
            busy.update(job.assigned_employee_ids)
    return busy


def classify(
    window: TimeWindow,
    employee_ids: Iterable[int],
    jobs: Iterable[ScheduledJob],
    exclude_job_id: Optional[int] = None,
) -> AvailabilityResult:
    """Mark every employee busy if a blocking job of theirs overlaps the window"""
    busy = busy_employee_ids(window, jobs, exclude_job_id)
    statuses = {
        eid: (Availability.BUSY if eid in busy else Availability.AVAILABLE) for eid in employee_ids
    }
    return AvailabilityResult(window=window, statuses=statuses)


def lookup_window(window: TimeWindow) -> TimeWindow:
    """Fetch range padded by the candidate's own duration on each side"""
    return window.padded(window.duration_minutes)


def check_availability(
    fetch_jobs: JobFetcher,
    start: datetime,
    duration_minutes: Optional[int],
    employee_ids: Iterable[int],
    exclude_job_id: Optional[int] = None,
) -> AvailabilityResult:
    """
    Classify employees for a candidate start and duration.

    Performs one read of the jobs in the padded window. If that read fails the
    result carries no statuses, which callers must treat as unknown.
    """
    window = candidate_window(start, duration_minutes)
    lookup = lookup_window(window)
    try:
        jobs = list(fetch_jobs(lookup.start, lookup.end))
    except Exception as e:
        logger.error(f"❌ Failed to check staff availability: {e}")
        return AvailabilityResult(window=window)
    return classify(window, employee_ids, jobs, exclude_job_id)
