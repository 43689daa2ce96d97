"""
Date-range bucketing for trend charts.

Buckets are contiguous and inclusive: each bucket ends one microsecond before the
next one starts, the first never starts before the requested start and the last
never ends after the requested end. Arithmetic is on wall-clock time, so a day
bucket is a calendar day even across a daylight-saving change.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Callable, Iterable, Mapping, Optional

from dateutil.relativedelta import relativedelta

from ...config import WEEK_STARTS_ON
from ...shared.timeutils import business_tz

logger = logging.getLogger(__name__)

ONE_MICROSECOND = timedelta(microseconds=1)

# Longest range (in calendar days) that still gets daily / weekly buckets
DAILY_MAX_DAYS = 7
WEEKLY_MAX_DAYS = 45


class Granularity(str, enum.Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class PeriodKey(str, enum.Enum):
    TODAY = "today"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"
    CUSTOM = "custom"


@dataclass(frozen=True)
class TrendBucket:
    label: str
    start: datetime
    end: datetime

    def to_dict(self) -> dict:
        return {"label": self.label, "startDate": self.start.isoformat(), "endDate": self.end.isoformat()}


@dataclass(frozen=True)
class TrendPoint:
    label: str
    start: datetime
    revenue: float = 0.0
    costs: float = 0.0
    profit: float = 0.0
    failed: bool = False

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "startDate": self.start.isoformat(),
            "revenue": self.revenue,
            "costs": self.costs,
            "profit": self.profit,
        }


# ============================================================================
# CALENDAR HELPERS
# ============================================================================


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min, tzinfo=value.tzinfo)


def end_of_day(value: datetime) -> datetime:
    return start_of_day(value) + timedelta(days=1) - ONE_MICROSECOND


def start_of_week(value: datetime, week_starts_on: int = WEEK_STARTS_ON) -> datetime:
    day = start_of_day(value)
    return day - timedelta(days=(day.weekday() - week_starts_on) % 7)


def start_of_month(value: datetime) -> datetime:
    return start_of_day(value).replace(day=1)


def calendar_day_count(start: datetime, end: datetime) -> int:
    return max(1, (end.date() - start.date()).days + 1)


def format_day_label(value: datetime) -> str:
    return f"{value:%a} {value.day} {value:%b}"


def select_granularity(start: datetime, end: datetime, period: Optional[PeriodKey] = None) -> Granularity:
    """Daily up to a week, weekly up to 45 days, monthly beyond"""
    if period in (PeriodKey.TODAY, PeriodKey.THIS_WEEK):
        return Granularity.DAY
    days = calendar_day_count(start, end)
    if days <= DAILY_MAX_DAYS:
        return Granularity.DAY
    if days <= WEEKLY_MAX_DAYS:
        return Granularity.WEEK
    return Granularity.MONTH


# ============================================================================
# BUCKETS
# ============================================================================


def build_trend_buckets(
    start: datetime,
    end: datetime,
    period: Optional[PeriodKey] = None,
    granularity: Optional[Granularity] = None,
    week_starts_on: int = WEEK_STARTS_ON,
) -> list[TrendBucket]:
    """
    Split [start, end] into labeled buckets.

    An explicit granularity wins over the automatic choice; a single-day range
    (or the "today" period) is always one bucket.
    """
    if end < start:
        raise ValueError("end must not be before start")

    period = PeriodKey(period) if period else None
    if period is PeriodKey.TODAY or calendar_day_count(start, end) == 1:
        return [TrendBucket(format_day_label(start), start, end)]

    granularity = Granularity(granularity) if granularity else select_granularity(start, end, period)
    buckets: list[TrendBucket] = []

    if granularity is Granularity.DAY:
        cursor = start
        while cursor <= end:
            buckets.append(TrendBucket(format_day_label(cursor), cursor, min(end_of_day(cursor), end)))
            cursor = start_of_day(cursor) + timedelta(days=1)
        return buckets

    if granularity is Granularity.WEEK:
        cursor = start_of_week(start, week_starts_on)
        while cursor <= end:
            bucket_start = max(cursor, start)
            next_cursor = cursor + timedelta(days=7)
            buckets.append(
                TrendBucket(
                    f"Wk of {bucket_start.day} {bucket_start:%b}",
                    bucket_start,
                    min(next_cursor - ONE_MICROSECOND, end),
                )
            )
            cursor = next_cursor
        return buckets

    cursor = start_of_month(start)
    while cursor <= end:
        next_cursor = cursor + relativedelta(months=1)
        buckets.append(
            TrendBucket(f"{cursor:%b %Y}", max(cursor, start), min(next_cursor - ONE_MICROSECOND, end))
        )
        cursor = next_cursor
    return buckets


SummaryFetcher = Callable[[TrendBucket], Mapping]


def build_trend_series(buckets: Iterable[TrendBucket], fetch_summary: SummaryFetcher) -> list[TrendPoint]:
    """
    One point per bucket, each fetched independently.

    A bucket whose fetch fails contributes zeros instead of failing the series.
    """
    points: list[TrendPoint] = []
    for bucket in buckets:
        try:
            summary = fetch_summary(bucket)
            points.append(
                TrendPoint(
                    label=bucket.label,
                    start=bucket.start,
                    revenue=float(summary.get("totalRevenue", 0) or 0),
                    costs=float(summary.get("totalCosts", 0) or 0),
                    profit=float(summary.get("grossProfit", 0) or 0),
                )
            )
        except Exception as e:
            logger.error(f"❌ Failed to fetch profitability trend bucket {bucket.label}: {e}")
            points.append(TrendPoint(label=bucket.label, start=bucket.start, failed=True))
    return sorted(points, key=lambda p: p.start)


# ============================================================================
# PERIODS
# ============================================================================


def period_range(
    period: PeriodKey,
    now: Optional[datetime] = None,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
    tz: Optional[tzinfo] = None,
    week_starts_on: int = WEEK_STARTS_ON,
) -> tuple[datetime, datetime]:
    """Local start/end instants of a reporting period"""
    tz = tz or business_tz()
    now = (now or datetime.now(tz)).astimezone(tz)
    period = PeriodKey(period)

    if period is PeriodKey.TODAY:
        return start_of_day(now), end_of_day(now)

    if period is PeriodKey.THIS_MONTH:
        first = start_of_month(now)
        return first, first + relativedelta(months=1) - ONE_MICROSECOND

    if period is PeriodKey.CUSTOM:
        start = datetime.combine(custom_start, time.min, tzinfo=tz) if custom_start else start_of_day(now)
        end = end_of_day(datetime.combine(custom_end, time.min, tzinfo=tz)) if custom_end else end_of_day(start)
        if start > end:
            return start, end_of_day(start)
        return start, end

    first = start_of_week(now, week_starts_on)
    return first, first + timedelta(days=7) - ONE_MICROSECOND


def previous_range(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """The same number of calendar days immediately before start"""
    days = calendar_day_count(start, end)
    prev_end = end_of_day(start - timedelta(days=1))
    prev_start = start_of_day(start - timedelta(days=days))
    return prev_start, prev_end


def percent_change(current: float, previous: float) -> float:
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / abs(previous) * 100, 2)
