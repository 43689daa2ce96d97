"""Reporting repository - Read-only queries for profitability"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Expense, Job, JobAssignment, WorkSession
from ...shared.timeutils import to_db


class ReportingRepository:
    """Repository for profitability reads"""

    @staticmethod
    def get_completed_jobs(
        db: Session,
        start: datetime,
        end: datetime,
        customer_id: Optional[int] = None,
        employee_id: Optional[int] = None,
    ) -> list[Job]:
        """Completed jobs whose completion time falls in [start, end]"""
        query = (
            db.query(Job)
            .options(joinedload(Job.customer), joinedload(Job.assignments).joinedload(JobAssignment.employee))
            .filter(
                Job.status == "completed",
                Job.completed_at.isnot(None),
                Job.completed_at >= to_db(start),
                Job.completed_at <= to_db(end),
            )
        )
        if customer_id is not None:
            query = query.filter(Job.customer_id == customer_id)
        if employee_id is not None:
            query = query.filter(Job.assignments.any(JobAssignment.employee_id == employee_id))
        return query.all()

    @staticmethod
    def get_work_sessions(
        db: Session, start: datetime, end: datetime, employee_id: Optional[int] = None
    ) -> list[WorkSession]:
        query = (
            db.query(WorkSession)
            .options(joinedload(WorkSession.employee))
            .filter(
                WorkSession.started_at.isnot(None),
                WorkSession.started_at >= to_db(start),
                WorkSession.started_at <= to_db(end),
            )
        )
        if employee_id is not None:
            query = query.filter(WorkSession.employee_id == employee_id)
        return query.all()

    @staticmethod
    def get_expenses(db: Session, start: datetime, end: datetime) -> list[Expense]:
        return (
            db.query(Expense)
            .filter(Expense.expense_date >= to_db(start), Expense.expense_date <= to_db(end))
            .all()
        )
