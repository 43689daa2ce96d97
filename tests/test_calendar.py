from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from cleanops.domain.scheduling.calendar import (
    EMPLOYEE_COLORS,
    CalendarEvent,
    CalendarView,
    TimelineLayout,
    calendar_range,
    daily_stats,
    day_bounds,
    drop_target,
    employee_color,
    group_by_day,
    group_by_employee,
    overlapping_events,
)

UTC = timezone.utc
LONDON = ZoneInfo("Europe/London")


def event(event_id=1, start=None, minutes=60, status="scheduled", employees=(), price=None):
    start = start or datetime(2030, 3, 4, 10, tzinfo=UTC)
    return CalendarEvent(
        id=event_id,
        title=f"Job {event_id}",
        start=start,
        end=start + timedelta(minutes=minutes),
        status=status,
        duration_minutes=minutes,
        assigned_employee_ids=frozenset(employees),
        price=price,
    )


class TestRanges:
    def test_week_view_starts_monday(self):
        assert calendar_range(CalendarView.WEEK, date(2030, 3, 6)) == (date(2030, 3, 4), date(2030, 3, 10))

    def test_month_view_is_padded_to_whole_weeks(self):
        start, end = calendar_range(CalendarView.MONTH, date(2030, 3, 15))
        assert start == date(2030, 2, 25)
        assert end == date(2030, 3, 31)
        assert (end - start).days % 7 == 6

    def test_day_view(self):
        assert calendar_range("day", date(2030, 3, 6)) == (date(2030, 3, 6), date(2030, 3, 6))

    def test_day_bounds_follow_local_calendar_across_dst(self):
        # Clocks go forward on 31 March 2030 in London
        start, end = day_bounds(date(2030, 3, 31), LONDON)
        assert end - start == timedelta(hours=23)
        assert start == datetime(2030, 3, 31, 0, tzinfo=UTC)


class TestGrouping:
    def test_every_day_in_range_is_present(self):
        grouped = group_by_day([event()], date(2030, 3, 4), date(2030, 3, 6), LONDON)
        assert list(grouped) == [date(2030, 3, 4), date(2030, 3, 5), date(2030, 3, 6)]
        assert [e.id for e in grouped[date(2030, 3, 4)]] == [1]
        assert grouped[date(2030, 3, 5)] == []

    def test_events_grouped_by_local_start_day(self):
        new_york = ZoneInfo("America/New_York")
        late = event(start=datetime(2030, 3, 5, 2, tzinfo=UTC))
        grouped = group_by_day([late], date(2030, 3, 4), date(2030, 3, 5), new_york)
        assert [e.id for e in grouped[date(2030, 3, 4)]] == [1]

    def test_group_by_employee_lists_shared_jobs_under_each(self):
        grouped = group_by_employee([event(1, employees=(1, 2)), event(2)])
        assert [e.id for e in grouped[1]] == [1]
        assert [e.id for e in grouped[2]] == [1]
        assert [e.id for e in grouped[None]] == [2]

    def test_daily_stats_exclude_cancelled_revenue(self):
        stats = daily_stats(
            [
                event(1, price=100),
                event(2, status="completed", price=50.5),
                event(3, status="cancelled", price=80),
                event(4, status="in-progress"),
            ]
        )
        assert stats == {
            "total": 4,
            "scheduled": 1,
            "inProgress": 1,
            "completed": 1,
            "cancelled": 1,
            "totalRevenue": 150.5,
        }

    def test_overlapping_events(self):
        ten = datetime(2030, 3, 4, 10, tzinfo=UTC)
        events = [event(1, start=ten), event(2, start=ten + timedelta(hours=1))]
        found = overlapping_events(events, ten + timedelta(minutes=30), ten + timedelta(hours=1))
        assert [e.id for e in found] == [1]


class TestTimeline:
    def test_forty_eight_half_hour_slots(self):
        slots = TimelineLayout().time_slots()
        assert len(slots) == 48
        assert slots[0].label == "00:00"
        assert slots[-1].label == "23:30"

    def test_position(self):
        layout = TimelineLayout(slot_height=72)
        top, height = layout.position(event(start=datetime(2030, 3, 4, 9, 30, tzinfo=UTC), minutes=90), LONDON)
        assert top == 9 * 72 + 36
        assert height == 108

    def test_short_events_get_half_slot_height(self):
        assert TimelineLayout(slot_height=72).height(15) == 36

    def test_slot_at_snaps_down(self):
        layout = TimelineLayout(slot_height=72)
        slot = layout.slot_at(10 * 72 + 50)
        assert (slot.hour, slot.minute) == (10, 30)
        assert layout.slot_at(-5).label == "00:00"
        assert layout.slot_at(10_000).label == "23:30"

    def test_drop_target_is_local_wall_clock(self):
        summer = drop_target(date(2030, 7, 1), 9, 0, LONDON)
        assert summer == datetime(2030, 7, 1, 8, tzinfo=UTC)

    def test_drop_target_rejects_invalid_slot(self):
        with pytest.raises(ValueError):
            drop_target(date(2030, 7, 1), 24, 0, LONDON)


class TestEvents:
    def test_completed_event_is_locked(self):
        assert event(status="completed").is_locked
        assert not event().is_locked

    def test_employee_color_palette_and_override(self):
        assert employee_color(9) == EMPLOYEE_COLORS[1]
        assert employee_color(9, "#123456") == "#123456"

    def test_from_payload_defaults_end_from_duration(self):
        parsed = CalendarEvent.from_payload(
            {"id": 3, "start": "2030-03-04T10:00:00Z", "durationMinutes": 30, "status": "scheduled"}
        )
        assert parsed.end - parsed.start == timedelta(hours=1)

    def test_from_payload_without_start_is_skipped(self):
        assert CalendarEvent.from_payload({"id": 3, "start": None}) is None

    def test_to_dict_is_camel_case(self):
        data = event(employees=(2, 1)).to_dict()
        assert data["assignedEmployeeIds"] == [1, 2]
        assert data["durationMinutes"] == 60
        assert data["color"] == "#3B82F6"
