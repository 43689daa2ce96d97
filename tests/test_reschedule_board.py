import asyncio
import json
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import httpx
import pytest

from cleanops.client import OperationsClient
from cleanops.domain.scheduling.reschedule import (
    DRAG_RESCHEDULE_REASON,
    CalendarBoard,
    CalendarPoller,
    RescheduleRejected,
    plan_reschedule,
    shift_range,
)
from cleanops.domain.scheduling.calendar import CalendarEvent
from cleanops.events import EventBus, JobsChanged

UTC = timezone.utc
LONDON = ZoneInfo("Europe/London")
MONDAY = date(2030, 3, 4)


class FakeOperationsApi:
    """Calendar and reschedule endpoints served through httpx.MockTransport"""

    def __init__(self):
        self.events = {
            1: {"id": 1, "title": "Office clean", "start": "2030-03-04T10:00:00+00:00",
                "end": "2030-03-04T11:00:00+00:00", "status": "scheduled", "durationMinutes": 60},
            2: {"id": 2, "title": "Flat clean", "start": "2030-03-04T13:00:00+00:00",
                "end": "2030-03-04T15:00:00+00:00", "status": "completed", "durationMinutes": 120},
        }
        self.requests: list[httpx.Request] = []
        self.reschedule_status = 200
        self.calendar_status = 200
        # Plain-text body sent instead of JSON on a 200
        self.reschedule_text = None
        self.calendar_text = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/jobs/calendar":
            if self.calendar_status != 200:
                return httpx.Response(self.calendar_status, json={"error": "Calendar unavailable"})
            if self.calendar_text is not None:
                return httpx.Response(200, text=self.calendar_text)
            return httpx.Response(200, json={"events": list(self.events.values())})
        if request.url.path.endswith("/reschedule"):
            if self.reschedule_status != 200:
                return httpx.Response(self.reschedule_status, json={"error": "Slot no longer free"})
            if self.reschedule_text is not None:
                return httpx.Response(200, text=self.reschedule_text)
            job_id = int(request.url.path.split("/")[2])
            body = json.loads(request.content)
            self.events[job_id].update(start=body["newDate"], end=body["newEndDate"])
            return httpx.Response(200, json={"success": True})
        return httpx.Response(404, json={"error": "Not found"})

    def posts(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]


@pytest.fixture
def api():
    return FakeOperationsApi()


@pytest.fixture
def notes():
    return []


@pytest.fixture
def board(api, notes):
    http = httpx.Client(transport=httpx.MockTransport(api.handler), base_url="http://ops.test")
    client = OperationsClient(http_client=http)
    board = CalendarBoard(
        client,
        MONDAY,
        MONDAY,
        notifier=lambda level, message: notes.append((level, message)),
        event_bus=EventBus(),
        tz=LONDON,
    )
    board.refresh()
    yield board
    board.close()
    client.close()


class TestPlanReschedule:
    def test_duration_is_preserved(self):
        event = CalendarEvent.from_payload(
            {"id": 1, "start": "2030-03-04T10:00:00Z", "end": "2030-03-04T12:30:00Z", "status": "scheduled"}
        )
        plan = plan_reschedule(event, MONDAY, 14, 30, LONDON)
        assert plan.new_start == datetime(2030, 3, 4, 14, 30, tzinfo=UTC)
        assert plan.new_end == datetime(2030, 3, 4, 17, 0, tzinfo=UTC)
        assert plan.reason == DRAG_RESCHEDULE_REASON

    def test_completed_job_is_rejected(self):
        event = CalendarEvent.from_payload({"id": 2, "start": "2030-03-04T10:00:00Z", "status": "completed"})
        with pytest.raises(RescheduleRejected, match="Completed jobs cannot be rescheduled"):
            plan_reschedule(event, MONDAY, 9, 0, LONDON)


class TestCalendarBoard:
    def test_refresh_loads_events(self, board):
        assert set(board.events) == {1, 2}
        assert [e.id for e in board.events_for_selected_day()] == [1, 2]

    def test_drop_sends_reschedule_and_publishes(self, board, api, notes):
        received = []
        board.bus.subscribe(JobsChanged, received.append)

        assert board.drop(1, 14, 0) is True

        (post,) = api.posts()
        assert post.url.path == "/jobs/1/reschedule"
        assert json.loads(post.content) == {
            "newDate": "2030-03-04T14:00:00+00:00",
            "newEndDate": "2030-03-04T15:00:00+00:00",
            "reason": DRAG_RESCHEDULE_REASON,
        }
        assert board.events[1].start == datetime(2030, 3, 4, 14, tzinfo=UTC)
        assert received == [JobsChanged(job_ids=(1,), reason="rescheduled")]
        assert notes[-1] == ("success", "Job rescheduled")
        assert board.busy is False

    def test_completed_job_drop_makes_no_request(self, board, api, notes):
        assert board.drop(2, 9, 0) is False
        assert api.posts() == []
        assert notes == [("error", "Completed jobs cannot be rescheduled")]
        assert board.events[2].start == datetime(2030, 3, 4, 13, tzinfo=UTC)

    def test_failed_drop_reconciles_with_server(self, board, api, notes):
        api.reschedule_status = 409

        assert board.drop(1, 16, 0) is False
        assert board.events[1].start == datetime(2030, 3, 4, 10, tzinfo=UTC)
        assert notes == [("error", "Slot no longer free")]
        assert board.busy is False

    def test_failed_drop_rolls_back_when_refetch_fails(self, board, api):
        api.reschedule_status = 500
        api.calendar_status = 503

        assert board.drop(1, 16, 0) is False
        assert board.events[1].start == datetime(2030, 3, 4, 10, tzinfo=UTC)
        assert board.last_error == "Calendar unavailable"

    def test_unreadable_reschedule_reply_rolls_back_and_frees_board(self, board, api, notes):
        api.reschedule_text = "OK"

        assert board.drop(1, 16, 0) is False
        assert board.busy is False
        assert board.events[1].start == datetime(2030, 3, 4, 10, tzinfo=UTC)
        assert notes == [("error", "Failed to reschedule job")]

        api.reschedule_text = None
        assert board.drop(1, 14, 0) is True
        assert len(api.posts()) == 2
        assert board.events[1].start == datetime(2030, 3, 4, 14, tzinfo=UTC)

    def test_unreadable_calendar_keeps_current_events(self, board, api):
        api.calendar_text = "<html>Bad gateway</html>"

        assert board.refresh() is False
        assert set(board.events) == {1, 2}
        assert board.last_error

    def test_drop_ignored_while_busy(self, board, api):
        board.busy = True
        assert board.drop(1, 16, 0) is False
        assert api.posts() == []

    def test_unknown_job(self, board, notes):
        assert board.drop(99, 9, 0) is False
        assert notes == [("error", "Job is no longer on the calendar")]

    def test_jobs_changed_elsewhere_triggers_refetch(self, board, api):
        api.events[1]["start"] = "2030-03-04T08:00:00+00:00"
        api.events[1]["end"] = "2030-03-04T09:00:00+00:00"

        board.bus.publish(JobsChanged(job_ids=(1,), reason="assigned"))

        assert board.events[1].start == datetime(2030, 3, 4, 8, tzinfo=UTC)

    def test_shift_range_moves_selected_day(self, board):
        shift_range(board, 7)
        assert board.selected_day == date(2030, 3, 11)
        assert board.events_for_selected_day() == []


class TestCalendarPoller:
    @pytest.mark.asyncio
    async def test_polls_until_stopped(self, board, api):
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)
            if len(sleeps) > 3:
                await asyncio.Event().wait()

        poller = CalendarPoller(board, interval=15, sleep_fn=fake_sleep)
        task = poller.start()
        while poller.ticks < 3:
            await asyncio.sleep(0.01)
        await poller.stop()

        assert task.cancelled()
        assert sleeps[:3] == [15, 15, 15]
        calendar_reads = [r for r in api.requests if r.url.path == "/jobs/calendar"]
        assert len(calendar_reads) == 1 + poller.ticks

    @pytest.mark.asyncio
    async def test_tick_skipped_while_drop_in_flight(self, board, api):
        poller = CalendarPoller(board, sleep_fn=asyncio.sleep)
        board.busy = True
        before = len(api.requests)

        await poller.tick()

        assert poller.ticks == 0
        assert len(api.requests) == before
