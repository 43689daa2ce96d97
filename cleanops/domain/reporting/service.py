"""Reporting service - Profitability summaries and bucketed trends"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Job, WorkSession
from ...shared.timeutils import to_utc
from .buckets import (
    Granularity,
    PeriodKey,
    TrendBucket,
    build_trend_buckets,
    build_trend_series,
    percent_change,
    previous_range,
    select_granularity,
)
from .repository import ReportingRepository
from .schemas import (
    ExpenseLine,
    PeriodRange,
    ProfitabilityBreakdown,
    ProfitabilityResponse,
    ProfitabilitySummary,
    RevenueLine,
    TrendPointResponse,
    TrendResponse,
)

logger = logging.getLogger(__name__)


def job_revenue(job: Job) -> float:
    """Actual price when invoiced, else the estimate"""
    if job.actual_price is not None:
        return float(job.actual_price)
    if job.estimated_price is not None:
        return float(job.estimated_price)
    return 0.0


def session_hours(session: WorkSession) -> float:
    if session.started_at and session.ended_at:
        return (session.ended_at - session.started_at).total_seconds() / 3600
    if session.duration_minutes:
        return session.duration_minutes / 60
    return 0.0


def _money(value: float) -> float:
    return round(value * 100) / 100


class ReportingService:
    """Service layer for profitability reporting"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReportingRepository()

    def get_profitability(
        self,
        start: datetime,
        end: datetime,
        customer_id: Optional[int] = None,
        employee_id: Optional[int] = None,
    ) -> ProfitabilityResponse:
        if to_utc(end) < to_utc(start):
            raise HTTPException(status_code=400, detail="endDate must not be before startDate")

        jobs = self.repo.get_completed_jobs(self.db, start, end, customer_id, employee_id)
        sessions = self.repo.get_work_sessions(self.db, start, end, employee_id)
        expenses = self.repo.get_expenses(self.db, start, end)

        total_revenue = sum(job_revenue(job) for job in jobs)
        total_labor = sum(
            session_hours(s) * float(s.employee.hourly_rate or 0) for s in sessions if s.employee is not None
        )
        total_expenses = sum(float(e.amount or 0) for e in expenses)
        total_costs = total_labor + total_expenses
        gross_profit = total_revenue - total_costs
        margin = (gross_profit / total_revenue) * 100 if total_revenue > 0 else 0

        by_customer: dict[str, RevenueLine] = {}
        by_employee: dict[str, RevenueLine] = {}
        for job in jobs:
            revenue = job_revenue(job)

            customer_key = str(job.customer_id) if job.customer_id else "unknown"
            customer_name = (job.customer.full_name if job.customer else "") or "Unknown Customer"
            line = by_customer.setdefault(
                customer_key, RevenueLine(id=customer_key, name=customer_name, revenue=0, jobCount=0)
            )
            line.revenue += revenue
            line.jobCount += 1

            # Revenue is credited once, to the first assignee
            assignee = job.primary_assignee
            employee_key = str(assignee.id) if assignee else "unassigned"
            line = by_employee.setdefault(
                employee_key,
                RevenueLine(id=employee_key, name=assignee.name if assignee else "Unassigned", revenue=0, jobCount=0),
            )
            line.revenue += revenue
            line.jobCount += 1

        by_category: dict[str, float] = {}
        for expense in expenses:
            category = expense.category or "uncategorized"
            by_category[category] = by_category.get(category, 0) + float(expense.amount or 0)

        for line in list(by_customer.values()) + list(by_employee.values()):
            line.revenue = _money(line.revenue)

        return ProfitabilityResponse(
            period=PeriodRange(startDate=to_utc(start), endDate=to_utc(end)),
            summary=ProfitabilitySummary(
                totalRevenue=_money(total_revenue),
                totalLaborCost=_money(total_labor),
                totalExpenses=_money(total_expenses),
                totalCosts=_money(total_costs),
                grossProfit=_money(gross_profit),
                profitMargin=_money(margin),
                totalJobs=len(jobs),
                averageJobValue=_money(total_revenue / len(jobs)) if jobs else 0,
            ),
            breakdown=ProfitabilityBreakdown(
                byCustomer=sorted(by_customer.values(), key=lambda l: l.revenue, reverse=True),
                byEmployee=sorted(by_employee.values(), key=lambda l: l.revenue, reverse=True),
                expensesByCategory=sorted(
                    (ExpenseLine(category=c, amount=_money(a)) for c, a in by_category.items()),
                    key=lambda l: l.amount,
                    reverse=True,
                ),
            ),
        )

    def _bucket_summary(self, bucket: TrendBucket) -> dict:
        try:
            return self.get_profitability(bucket.start, bucket.end).summary.model_dump()
        except Exception:
            self.db.rollback()
            raise

    def get_trend(
        self,
        start: datetime,
        end: datetime,
        period: Optional[PeriodKey] = None,
        granularity: Optional[Granularity] = None,
        compare_previous: bool = True,
    ) -> TrendResponse:
        """Bucketed revenue/costs/profit, plus the previous comparable period when asked"""
        try:
            buckets = build_trend_buckets(start, end, period, granularity)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        points = build_trend_series(buckets, self._bucket_summary)
        failed = sum(1 for p in points if p.failed)
        if failed:
            logger.warning(f"⚠️ {failed} of {len(points)} trend buckets failed and were zeroed")

        chosen = granularity or select_granularity(start, end, period)
        response = TrendResponse(
            period=PeriodRange(startDate=to_utc(start), endDate=to_utc(end)),
            granularity=Granularity(chosen).value,
            points=[
                TrendPointResponse(
                    label=p.label, startDate=p.start, revenue=p.revenue, costs=p.costs, profit=p.profit
                )
                for p in points
            ],
        )

        if compare_previous:
            prev_start, prev_end = previous_range(start, end)
            current = self.get_profitability(start, end).summary
            previous = self.get_profitability(prev_start, prev_end).summary
            response.previous = previous
            response.changes = {
                "revenue": percent_change(current.totalRevenue, previous.totalRevenue),
                "costs": percent_change(current.totalCosts, previous.totalCosts),
                "profit": percent_change(current.grossProfit, previous.grossProfit),
                "jobs": percent_change(current.totalJobs, previous.totalJobs),
            }
        return response
