"""
Calendar projection of scheduled jobs.

Maps jobs onto day/week/month grids and a 24-hour timeline of 30-minute slots.
Day boundaries are calendar days in the business timezone, so a day is 23 or 25
hours long across a daylight-saving change.
"""

import enum
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Iterable, Mapping, Optional

from ...config import TIMELINE_SLOT_HEIGHT_PX, WEEK_STARTS_ON
from ...shared.timeutils import business_tz, parse_instant, to_utc
from .windows import ScheduledJob, effective_duration

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    "scheduled": "#3B82F6",
    "in-progress": "#F59E0B",
    "completed": "#10B981",
    "cancelled": "#EF4444",
    "pending": "#6B7280",
}
DEFAULT_STATUS_COLOR = "#6B7280"

EMPLOYEE_COLORS = [
    "#3B82F6",
    "#10B981",
    "#F59E0B",
    "#EF4444",
    "#8B5CF6",
    "#EC4899",
    "#06B6D4",
    "#84CC16",
]

SLOT_MINUTES = 30


class CalendarView(str, enum.Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


def status_color(status: Optional[str]) -> str:
    return STATUS_COLORS.get(status or "", DEFAULT_STATUS_COLOR)


def employee_color(employee_id: int, custom: Optional[str] = None) -> str:
    return custom or EMPLOYEE_COLORS[employee_id % len(EMPLOYEE_COLORS)]


# ============================================================================
# DAY AND RANGE MATH
# ============================================================================


def start_of_week(day: date, week_starts_on: int = WEEK_STARTS_ON) -> date:
    return day - timedelta(days=(day.weekday() - week_starts_on) % 7)


def end_of_week(day: date, week_starts_on: int = WEEK_STARTS_ON) -> date:
    return start_of_week(day, week_starts_on) + timedelta(days=6)


def calendar_range(view: CalendarView, anchor: date, week_starts_on: int = WEEK_STARTS_ON) -> tuple[date, date]:
    """
    Inclusive first and last calendar day shown for a view.

    The month view is padded out to whole weeks, as in a month grid.
    """
    view = CalendarView(view)
    if view is CalendarView.DAY:
        return anchor, anchor
    if view is CalendarView.WEEK:
        return start_of_week(anchor, week_starts_on), end_of_week(anchor, week_starts_on)
    first = anchor.replace(day=1)
    next_month = (first.replace(day=28) + timedelta(days=4)).replace(day=1)
    last = next_month - timedelta(days=1)
    return start_of_week(first, week_starts_on), end_of_week(last, week_starts_on)


def calendar_days(start_day: date, end_day: date) -> list[date]:
    """Every calendar day in [start_day, end_day] inclusive"""
    days = []
    current = start_day
    while current <= end_day:
        days.append(current)
        current += timedelta(days=1)
    return days


def day_bounds(day: date, tz: Optional[tzinfo] = None) -> tuple[datetime, datetime]:
    """Local midnight to next local midnight, returned as UTC instants"""
    tz = tz or business_tz()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return to_utc(start), to_utc(end)


def range_bounds(start_day: date, end_day: date, tz: Optional[tzinfo] = None) -> tuple[datetime, datetime]:
    return day_bounds(start_day, tz)[0], day_bounds(end_day, tz)[1]


def local_day(instant: datetime, tz: Optional[tzinfo] = None) -> date:
    return to_utc(instant).astimezone(tz or business_tz()).date()


# ============================================================================
# EVENTS
# ============================================================================


@dataclass
class CalendarEvent:
    id: int
    title: str
    start: datetime
    end: datetime
    status: str
    duration_minutes: int
    assigned_employee_ids: frozenset = field(default_factory=frozenset)
    customer_name: Optional[str] = None
    location: Optional[str] = None
    price: Optional[float] = None

    @property
    def color(self) -> str:
        return status_color(self.status)

    @property
    def is_locked(self) -> bool:
        """Completed jobs cannot be moved on the calendar"""
        return self.status == "completed"

    @classmethod
    def from_job(cls, job: ScheduledJob, **extra) -> Optional["CalendarEvent"]:
        window = job.effective_window()
        if window is None:
            return None
        return cls(
            id=job.id,
            title=job.title or f"Job #{job.id}",
            start=window.start,
            end=window.end,
            status=job.status,
            duration_minutes=window.duration_minutes,
            assigned_employee_ids=job.assigned_employee_ids,
            **extra,
        )

    @classmethod
    def from_model(cls, job) -> Optional["CalendarEvent"]:
        customer = job.customer
        return cls.from_job(
            ScheduledJob.from_model(job),
            customer_name=customer.full_name if customer else None,
            location=job.full_address or None,
            price=job.actual_price if job.actual_price is not None else job.estimated_price,
        )

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Optional["CalendarEvent"]:
        """Build from a calendar event returned by the API"""
        start = parse_instant(data.get("start"))
        end = parse_instant(data.get("end"))
        if start is None:
            return None
        duration = data.get("durationMinutes")
        if end is None:
            end = start + timedelta(minutes=effective_duration(duration))
        return cls(
            id=int(data["id"]),
            title=data.get("title") or f"Job #{data['id']}",
            start=start,
            end=end,
            status=data.get("status") or "scheduled",
            duration_minutes=int(duration) if duration else int((end - start).total_seconds() // 60),
            assigned_employee_ids=frozenset(data.get("assignedEmployeeIds") or []),
            customer_name=data.get("customerName"),
            location=data.get("location"),
            price=data.get("price"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "status": self.status,
            "color": self.color,
            "durationMinutes": self.duration_minutes,
            "assignedEmployeeIds": sorted(self.assigned_employee_ids),
            "customerName": self.customer_name,
            "location": self.location,
            "price": self.price,
        }


def group_by_day(
    events: Iterable[CalendarEvent],
    start_day: date,
    end_day: date,
    tz: Optional[tzinfo] = None,
) -> "OrderedDict[date, list[CalendarEvent]]":
    """Events keyed by local start day; every day in the range gets a (possibly empty) list"""
    tz = tz or business_tz()
    grouped: OrderedDict[date, list[CalendarEvent]] = OrderedDict(
        (day, []) for day in calendar_days(start_day, end_day)
    )
    for event in sorted(events, key=lambda e: e.start):
        day = local_day(event.start, tz)
        if day in grouped:
            grouped[day].append(event)
    return grouped


def group_by_employee(events: Iterable[CalendarEvent]) -> dict[Optional[int], list[CalendarEvent]]:
    """Events keyed by assignee; unassigned events are keyed by None"""
    grouped: dict[Optional[int], list[CalendarEvent]] = {}
    for event in sorted(events, key=lambda e: e.start):
        if not event.assigned_employee_ids:
            grouped.setdefault(None, []).append(event)
            continue
        for employee_id in sorted(event.assigned_employee_ids):
            grouped.setdefault(employee_id, []).append(event)
    return grouped


def daily_stats(events: Iterable[CalendarEvent]) -> dict:
    events = list(events)
    return {
        "total": len(events),
        "scheduled": sum(1 for e in events if e.status == "scheduled"),
        "inProgress": sum(1 for e in events if e.status == "in-progress"),
        "completed": sum(1 for e in events if e.status == "completed"),
        "cancelled": sum(1 for e in events if e.status == "cancelled"),
        "totalRevenue": round(sum(e.price or 0 for e in events if e.status != "cancelled"), 2),
    }


def overlapping_events(events: Iterable[CalendarEvent], start: datetime, end: datetime) -> list[CalendarEvent]:
    """Events intersecting [start, end); used for the 'jobs at this hour' panel"""
    start, end = to_utc(start), to_utc(end)
    return [e for e in events if e.start < end and e.end > start]


# ============================================================================
# TIMELINE
# ============================================================================


@dataclass(frozen=True)
class TimeSlot:
    hour: int
    minute: int

    @property
    def label(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class TimelineLayout:
    """Pixel geometry of the single-day timeline; slot_height is pixels per hour"""

    slot_height: float = TIMELINE_SLOT_HEIGHT_PX

    def time_slots(self) -> list[TimeSlot]:
        return [TimeSlot(hour, minute) for hour in range(24) for minute in range(0, 60, SLOT_MINUTES)]

    def offset(self, hour: int, minute: int) -> float:
        return hour * self.slot_height + (minute / 60) * self.slot_height

    def height(self, duration_minutes: int) -> float:
        return max((duration_minutes / 60) * self.slot_height, self.slot_height / 2)

    def position(self, event: CalendarEvent, tz: Optional[tzinfo] = None) -> tuple[float, float]:
        """(top, height) of an event on its local day"""
        local = to_utc(event.start).astimezone(tz or business_tz())
        return self.offset(local.hour, local.minute), self.height(event.duration_minutes)

    def slot_at(self, offset_px: float) -> TimeSlot:
        """Nearest 30-minute slot at or above a vertical offset"""
        minutes = int(max(offset_px, 0) / self.slot_height * 60)
        minutes = min(minutes - minutes % SLOT_MINUTES, 24 * 60 - SLOT_MINUTES)
        return TimeSlot(minutes // 60, minutes % 60)


def drop_target(day: date, hour: int, minute: int, tz: Optional[tzinfo] = None) -> datetime:
    """UTC instant for a wall-clock slot on a local calendar day"""
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid slot {hour}:{minute}")
    local = datetime.combine(day, time(hour, minute), tzinfo=tz or business_tz())
    return to_utc(local)
