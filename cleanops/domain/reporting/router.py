"""Reporting router - Profitability endpoints"""

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...shared.timeutils import business_tz, parse_instant
from .buckets import Granularity, PeriodKey, end_of_day, period_range
from .schemas import ProfitabilityResponse, TrendResponse
from .service import ReportingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profitability", tags=["Reporting"])


def get_reporting_service(db: Session = Depends(get_db)) -> ReportingService:
    """Dependency injection for ReportingService"""
    return ReportingService(db)


def _range_param(value: str, name: str, is_end: bool = False) -> datetime:
    """
    ISO instant, or a bare YYYY-MM-DD taken as a whole business-timezone day
    (its first instant for a start, its last for an end).
    """
    tz = business_tz()
    try:
        day = date.fromisoformat(value)
    except ValueError:
        day = None
    if day is not None:
        midnight = datetime(day.year, day.month, day.day, tzinfo=tz)
        return end_of_day(midnight) if is_end else midnight

    parsed = parse_instant(value)
    if parsed is None:
        raise HTTPException(status_code=400, detail=f"Invalid {name}")
    return parsed.astimezone(tz)


def resolve_range(
    start_date: Optional[str],
    end_date: Optional[str],
    period: Optional[PeriodKey],
) -> tuple[datetime, datetime]:
    """Explicit dates win; otherwise the named period (default this month)"""
    if start_date and end_date:
        return _range_param(start_date, "startDate"), _range_param(end_date, "endDate", is_end=True)
    if start_date or end_date:
        raise HTTPException(status_code=400, detail="startDate and endDate must be given together")
    return period_range(period or PeriodKey.THIS_MONTH)


@router.get("", response_model=ProfitabilityResponse)
async def get_profitability(
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    period: Optional[PeriodKey] = Query(None),
    customerId: Optional[int] = Query(None),
    employeeId: Optional[int] = Query(None),
    service: ReportingService = Depends(get_reporting_service),
):
    """Revenue, labour, expenses and profit for completed jobs in a range"""
    start, end = resolve_range(startDate, endDate, period)
    return service.get_profitability(start, end, customerId, employeeId)


@router.get("/trend", response_model=TrendResponse)
async def get_profitability_trend(
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    period: Optional[PeriodKey] = Query(None),
    granularity: Optional[Granularity] = Query(None),
    comparePrevious: bool = Query(True),
    service: ReportingService = Depends(get_reporting_service),
):
    """Bucketed trend; a bucket that fails to load is reported as zeros"""
    start, end = resolve_range(startDate, endDate, period)
    return service.get_trend(start, end, period, granularity, comparePrevious)
