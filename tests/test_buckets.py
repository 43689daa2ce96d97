from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from cleanops.domain.reporting.buckets import (
    ONE_MICROSECOND,
    Granularity,
    PeriodKey,
    build_trend_buckets,
    build_trend_series,
    end_of_day,
    percent_change,
    period_range,
    previous_range,
    select_granularity,
)

LONDON = ZoneInfo("Europe/London")


def local(year, month, day, hour=0):
    return datetime(year, month, day, hour, tzinfo=LONDON)


def assert_gapless(buckets, start, end):
    assert buckets[0].start == start
    assert buckets[-1].end == end
    for previous, current in zip(buckets, buckets[1:]):
        assert current.start - previous.end == ONE_MICROSECOND


class TestGranularity:
    @pytest.mark.parametrize(
        "days,expected",
        [(2, Granularity.DAY), (7, Granularity.DAY), (8, Granularity.WEEK), (45, Granularity.WEEK), (46, Granularity.MONTH)],
    )
    def test_thresholds(self, days, expected):
        start = local(2030, 1, 1)
        end = end_of_day(start + timedelta(days=days - 1))
        assert select_granularity(start, end) is expected

    def test_this_week_is_always_daily(self):
        assert select_granularity(local(2030, 3, 4), local(2030, 3, 10), PeriodKey.THIS_WEEK) is Granularity.DAY


class TestBuildTrendBuckets:
    def test_ten_day_range_is_weekly_by_default(self):
        start, end = local(2030, 3, 4), end_of_day(local(2030, 3, 13))
        buckets = build_trend_buckets(start, end)

        assert [b.label for b in buckets] == ["Wk of 4 Mar", "Wk of 11 Mar"]
        assert buckets[0].end == end_of_day(local(2030, 3, 10))
        assert_gapless(buckets, start, end)

    def test_ten_day_range_with_explicit_daily_granularity(self):
        start, end = local(2030, 3, 4), end_of_day(local(2030, 3, 13))
        buckets = build_trend_buckets(start, end, granularity=Granularity.DAY)

        assert len(buckets) == 10
        assert buckets[0].label == "Mon 4 Mar"
        assert buckets[-1].label == "Wed 13 Mar"
        assert_gapless(buckets, start, end)

    def test_first_week_is_clamped_to_range_start(self):
        start, end = local(2030, 3, 6), end_of_day(local(2030, 3, 15))
        buckets = build_trend_buckets(start, end)

        assert buckets[0].start == start
        assert buckets[0].label == "Wk of 6 Mar"
        assert buckets[1].start == local(2030, 3, 11)
        assert_gapless(buckets, start, end)

    def test_hundred_day_range_is_monthly(self):
        start, end = local(2030, 1, 15), end_of_day(local(2030, 4, 24))
        buckets = build_trend_buckets(start, end)

        assert [b.label for b in buckets] == ["Jan 2030", "Feb 2030", "Mar 2030", "Apr 2030"]
        assert buckets[1].start == local(2030, 2, 1)
        assert_gapless(buckets, start, end)

    def test_monthly_buckets_cross_dst_on_wall_clock(self):
        start, end = local(2030, 1, 1), end_of_day(local(2030, 6, 30))
        buckets = build_trend_buckets(start, end)
        assert buckets[3].start == local(2030, 4, 1)
        assert buckets[3].start.utcoffset() == timedelta(hours=1)

    def test_single_day_is_one_bucket(self):
        start = local(2030, 3, 4, 8)
        end = local(2030, 3, 4, 18)
        (bucket,) = build_trend_buckets(start, end, granularity=Granularity.DAY)
        assert (bucket.start, bucket.end) == (start, end)
        assert bucket.label == "Mon 4 Mar"

    def test_today_period_is_one_bucket(self):
        start, end = period_range(PeriodKey.TODAY, now=local(2030, 3, 4, 12))
        assert len(build_trend_buckets(start, end, period=PeriodKey.TODAY)) == 1

    def test_end_before_start_is_rejected(self):
        with pytest.raises(ValueError):
            build_trend_buckets(local(2030, 3, 5), local(2030, 3, 4))


class TestTrendSeries:
    def test_failed_bucket_contributes_zeros(self):
        buckets = build_trend_buckets(local(2030, 3, 4), end_of_day(local(2030, 3, 6)))

        def fetch(bucket):
            if bucket.label == "Tue 5 Mar":
                raise RuntimeError("timeout")
            return {"totalRevenue": 200, "totalCosts": 80, "grossProfit": 120}

        points = build_trend_series(buckets, fetch)
        assert [p.revenue for p in points] == [200, 0, 200]
        assert [p.failed for p in points] == [False, True, False]
        assert points[1].to_dict()["profit"] == 0


class TestPeriods:
    def test_this_week_starts_monday(self):
        start, end = period_range(PeriodKey.THIS_WEEK, now=local(2030, 3, 6, 15))
        assert start == local(2030, 3, 4)
        assert end == end_of_day(local(2030, 3, 10))

    def test_this_month(self):
        start, end = period_range(PeriodKey.THIS_MONTH, now=local(2030, 2, 14, 9))
        assert start == local(2030, 2, 1)
        assert end == end_of_day(local(2030, 2, 28))

    def test_custom_period(self):
        start, end = period_range(
            PeriodKey.CUSTOM, now=local(2030, 3, 6), custom_start=date(2030, 3, 1), custom_end=date(2030, 3, 3)
        )
        assert start == local(2030, 3, 1)
        assert end == end_of_day(local(2030, 3, 3))

    def test_previous_range_has_same_length(self):
        start, end = previous_range(local(2030, 3, 4), end_of_day(local(2030, 3, 10)))
        assert start == local(2030, 2, 25)
        assert end == end_of_day(local(2030, 3, 3))

    @pytest.mark.parametrize(
        "current,previous,expected",
        [(150, 100, 50.0), (50, 100, -50.0), (10, 0, 100.0), (0, 0, 0.0), (1, 3, -66.67)],
    )
    def test_percent_change(self, current, previous, expected):
        assert percent_change(current, previous) == expected
