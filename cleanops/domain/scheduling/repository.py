"""Scheduling repository - Database operations for jobs and assignments"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import CleaningPlan, Customer, Employee, Job, JobAssignment, JobEvent
from ...shared.timeutils import to_db

DUPLICATE_WINDOW_MINUTES = 5


class SchedulingRepository:
    """Repository for job scheduling database operations"""

    @staticmethod
    def get_jobs_in_window(
        db: Session,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        customer_id: Optional[int] = None,
        status: Optional[str] = None,
        employee_id: Optional[int] = None,
    ) -> list[Job]:
        """Jobs whose start falls in [start, end], with assignments and customer loaded"""
        query = db.query(Job).options(
            joinedload(Job.assignments).joinedload(JobAssignment.employee),
            joinedload(Job.customer),
        )
        if start is not None:
            query = query.filter(Job.scheduled_for >= to_db(start))
        if end is not None:
            query = query.filter(Job.scheduled_for <= to_db(end))
        if customer_id is not None:
            query = query.filter(Job.customer_id == customer_id)
        if status:
            query = query.filter(Job.status.in_([s.strip() for s in status.split(",") if s.strip()]))
        if employee_id is not None:
            query = query.filter(Job.assignments.any(JobAssignment.employee_id == employee_id))
        return query.order_by(Job.scheduled_for.asc()).all()

    @staticmethod
    def get_job(db: Session, job_id: int) -> Optional[Job]:
        return db.query(Job).filter(Job.id == job_id).first()

    @staticmethod
    def find_duplicates(db: Session, customer_id: int, scheduled_for: datetime) -> list[Job]:
        """Active jobs for the same customer starting within a few minutes of scheduled_for"""
        tolerance = timedelta(minutes=DUPLICATE_WINDOW_MINUTES)
        start = to_db(scheduled_for)
        return (
            db.query(Job)
            .filter(
                Job.customer_id == customer_id,
                Job.scheduled_for >= start - tolerance,
                Job.scheduled_for <= start + tolerance,
                Job.status.notin_(["cancelled", "rejected"]),
            )
            .all()
        )

    @staticmethod
    def get_customer(db: Session, customer_id: int) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.id == customer_id).first()

    @staticmethod
    def get_plan(db: Session, plan_id: int) -> Optional[CleaningPlan]:
        return db.query(CleaningPlan).filter(CleaningPlan.id == plan_id).first()

    @staticmethod
    def get_employee(db: Session, employee_id: int) -> Optional[Employee]:
        return db.query(Employee).filter(Employee.id == employee_id).first()

    @staticmethod
    def get_employees(db: Session, employee_ids: Optional[list[int]] = None, active_only: bool = True) -> list[Employee]:
        query = db.query(Employee)
        if employee_ids is not None:
            query = query.filter(Employee.id.in_(employee_ids))
        if active_only:
            query = query.filter(Employee.status == "active")
        return query.order_by(Employee.id.asc()).all()

    @staticmethod
    def create_job(db: Session, assignments: list[dict], **job_data) -> Job:
        job = Job(**job_data)
        for assignment in assignments:
            job.assignments.append(JobAssignment(**assignment))
        db.add(job)
        db.flush()
        db.add(JobEvent(job_id=job.id, type="created", message=f"Job created: {job.title}"))
        db.commit()
        db.refresh(job)
        return job

    @staticmethod
    def add_event(db: Session, job: Job, event_type: str, message: str, meta: Optional[dict] = None) -> None:
        db.add(JobEvent(job_id=job.id, type=event_type, message=message, meta=meta))

    @staticmethod
    def save(db: Session, job: Job) -> Job:
        db.commit()
        db.refresh(job)
        return job
