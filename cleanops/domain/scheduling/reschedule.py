"""
Drag-and-drop rescheduling on the calendar.

A drop is an optimistic command: the move is applied to the board at once, the
reschedule request is sent, and the board is reconciled with the server either
way. On failure the snapshot is restored before refetching.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, tzinfo
from typing import Awaitable, Callable, Optional

from ...client import ApiError, OperationsClient
from ...config import CALENDAR_POLL_SECONDS
from ...events import EventBus, JobsChanged, bus as default_bus
from .calendar import (
    CalendarEvent,
    CalendarView,
    calendar_range,
    day_bounds,
    drop_target,
    range_bounds,
)

logger = logging.getLogger(__name__)

DRAG_RESCHEDULE_REASON = "Drag and drop reschedule from calendar"

# (level, message) -> None; level is "success" or "error"
Notifier = Callable[[str, str], None]


class RescheduleRejected(Exception):
    """A drop that must not reach the server"""


@dataclass(frozen=True)
class ReschedulePlan:
    job_id: int
    new_start: datetime
    new_end: datetime
    reason: str = DRAG_RESCHEDULE_REASON


def plan_reschedule(
    event: CalendarEvent, day: date, hour: int, minute: int, tz: Optional[tzinfo] = None
) -> ReschedulePlan:
    """New window for a job dropped on (hour, minute) of a day; duration is preserved"""
    if event.is_locked:
        raise RescheduleRejected("Completed jobs cannot be rescheduled")
    new_start = drop_target(day, hour, minute, tz)
    duration = event.end - event.start
    return ReschedulePlan(job_id=event.id, new_start=new_start, new_end=new_start + duration)


class OptimisticUpdate:
    """Apply/rollback pair over a board's event map, snapshotting the replaced entry"""

    def __init__(self, events: dict[int, CalendarEvent], updated: CalendarEvent):
        self._events = events
        self._updated = updated
        self._snapshot = events.get(updated.id)
        self.applied = False

    def apply(self) -> None:
        self._events[self._updated.id] = self._updated
        self.applied = True

    def rollback(self) -> None:
        if not self.applied:
            return
        if self._snapshot is None:
            self._events.pop(self._updated.id, None)
        else:
            self._events[self._updated.id] = self._snapshot
        self.applied = False


def _log_notifier(level: str, message: str) -> None:
    if level == "error":
        logger.error(f"❌ {message}")
    else:
        logger.info(f"✅ {message}")


class CalendarBoard:
    """
    Dashboard-side calendar state for one visible range.

    Holds the events last fetched from the server, applies drops optimistically
    and refetches whenever another part of the process publishes JobsChanged.
    """

    def __init__(
        self,
        client: OperationsClient,
        start_day: date,
        end_day: date,
        selected_day: Optional[date] = None,
        notifier: Optional[Notifier] = None,
        event_bus: Optional[EventBus] = None,
        tz: Optional[tzinfo] = None,
    ):
        self.client = client
        self.start_day = start_day
        self.end_day = end_day
        self.selected_day = selected_day or start_day
        self.notify = notifier or _log_notifier
        self.tz = tz
        self.events: dict[int, CalendarEvent] = {}
        self.busy = False
        self.last_error: Optional[str] = None
        self.bus = event_bus or default_bus
        self._unsubscribe = self.bus.subscribe(JobsChanged, self._on_jobs_changed)

    @classmethod
    def for_view(cls, client: OperationsClient, view: CalendarView, anchor: date, **kwargs) -> "CalendarBoard":
        start_day, end_day = calendar_range(view, anchor)
        return cls(client, start_day, end_day, selected_day=anchor, **kwargs)

    def close(self) -> None:
        self._unsubscribe()

    def _on_jobs_changed(self, event: JobsChanged) -> None:
        # A drop in flight refetches on its own once it settles
        if self.busy:
            return
        self.refresh()

    def refresh(self) -> bool:
        """Replace local events with the server's view. Failures keep the current state."""
        start, end = range_bounds(self.start_day, self.end_day, self.tz)
        try:
            data = self.client.calendar(start, end)
            events: dict[int, CalendarEvent] = {}
            for raw in data.get("events", []):
                event = CalendarEvent.from_payload(raw)
                if event is not None:
                    events[event.id] = event
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"❌ Failed to load calendar: {e}")
            return False

        self.events = events
        self.last_error = None
        return True

    def events_for_selected_day(self) -> list[CalendarEvent]:
        start, end = day_bounds(self.selected_day, self.tz)
        return sorted((e for e in self.events.values() if start <= e.start < end), key=lambda e: e.start)

    def drop(self, job_id: int, hour: int, minute: int) -> bool:
        """
        Move a job to (hour, minute) on the selected day.

        Returns True when the server accepted the move. Completed jobs are
        rejected here without a request, and input is ignored while a previous
        drop is still in flight.
        """
        if self.busy:
            logger.debug(f"Drop of job {job_id} ignored while another reschedule is pending")
            return False

        event = self.events.get(job_id)
        if event is None:
            self.notify("error", "Job is no longer on the calendar")
            return False

        try:
            plan = plan_reschedule(event, self.selected_day, hour, minute, self.tz)
        except RescheduleRejected as e:
            self.notify("error", str(e))
            return False

        update = OptimisticUpdate(
            self.events,
            replace(event, start=plan.new_start, end=plan.new_end, status="scheduled"),
        )
        update.apply()
        self.busy = True
        try:
            try:
                self.client.reschedule_job(plan.job_id, plan.new_start, plan.new_end, plan.reason)
            except Exception as e:
                # Unreadable success bodies count as failures too
                message = e.message if isinstance(e, ApiError) else "Failed to reschedule job"
                logger.warning(f"⚠️ Reschedule of job {job_id} rejected: {e}")
                update.rollback()
                self.refresh()
                self.notify("error", message)
                return False

            self.refresh()
            self.bus.publish(JobsChanged(job_ids=(job_id,), reason="rescheduled"))
        finally:
            self.busy = False
        self.notify("success", "Job rescheduled")
        return True


class CalendarPoller:
    """Refreshes a board on a fixed interval until stopped"""

    def __init__(
        self,
        board: CalendarBoard,
        interval: float = CALENDAR_POLL_SECONDS,
        sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.board = board
        self.interval = interval
        self.sleep_fn = sleep_fn
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None

    async def tick(self) -> None:
        if self.board.busy:
            return
        await asyncio.to_thread(self.board.refresh)
        self.ticks += 1

    async def run(self) -> None:
        logger.info(f"🔄 Calendar polling every {self.interval}s")
        while True:
            await self.sleep_fn(self.interval)
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"❌ Error in calendar poll: {e}")

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None


def shift_range(board: CalendarBoard, days: int) -> None:
    """Move the visible range (and selected day) by a number of days, then refetch"""
    delta = timedelta(days=days)
    board.start_day += delta
    board.end_day += delta
    board.selected_day += delta
    board.refresh()
