"""Scheduling service - Business logic for job windows, availability and rescheduling"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...events import publish_jobs_changed
from ...email_service import (
    JobAssignmentEmailParams,
    JobRescheduledEmailParams,
    send_job_assignment_email,
    send_job_rescheduled_email,
)
from ...models import Employee, Job, JobAssignment
from ...shared.timeutils import to_db, to_utc
from .availability import AvailabilityResult, check_availability, lookup_window
from .calendar import CalendarEvent, daily_stats, employee_color, group_by_day, group_by_employee, local_day
from .repository import SchedulingRepository
from .schemas import AssignRequest, JobCreate, RescheduleRequest
from .windows import ScheduledJob, candidate_window, parse_duration_minutes

logger = logging.getLogger(__name__)


def conflict(message: str, code: str, override: Optional[str] = None) -> HTTPException:
    """409 carrying a machine-readable code and the flag that overrides it"""
    return HTTPException(status_code=409, detail={"error": message, "code": code, "override": override})


class SchedulingService:
    """Service layer for job scheduling business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_jobs(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        customer_id: Optional[int] = None,
        status: Optional[str] = None,
        employee_id: Optional[int] = None,
    ) -> list[Job]:
        if start and end and to_utc(end) < to_utc(start):
            raise HTTPException(status_code=400, detail="endDate must not be before startDate")
        return self.repo.get_jobs_in_window(self.db, start, end, customer_id, status, employee_id)

    def get_job(self, job_id: int) -> Job:
        job = self.repo.get_job(self.db, job_id)
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        return job

    def fetch_scheduled_jobs(self, start: datetime, end: datetime) -> list[ScheduledJob]:
        return [ScheduledJob.from_model(job) for job in self.repo.get_jobs_in_window(self.db, start, end)]

    def get_availability(
        self,
        start: datetime,
        duration_minutes: Optional[int] = None,
        exclude_job_id: Optional[int] = None,
    ) -> AvailabilityResult:
        """Busy/available for every active employee against a candidate window"""
        employee_ids = [e.id for e in self.repo.get_employees(self.db)]
        return check_availability(
            self.fetch_scheduled_jobs, start, duration_minutes, employee_ids, exclude_job_id
        )

    def get_calendar(self, start: datetime, end: datetime, employee_id: Optional[int] = None) -> dict:
        """Calendar events in [start, end] with day/employee groupings and per-day stats"""
        jobs = self.get_jobs(start, end, employee_id=employee_id)
        events = [e for e in (CalendarEvent.from_model(job) for job in jobs) if e is not None]

        first_day, last_day = local_day(start), local_day(end - timedelta(microseconds=1))
        by_day = group_by_day(events, first_day, last_day)
        by_employee = group_by_employee(events)

        employees = self.repo.get_employees(self.db)
        resources = [
            {"id": e.id, "name": e.name, "color": employee_color(e.id, e.color), "role": e.role}
            for e in employees
        ]

        return {
            "events": [e.to_dict() for e in events],
            "groupedByDay": {day.isoformat(): [e.id for e in day_events] for day, day_events in by_day.items()},
            "groupedByEmployee": {
                ("unassigned" if key is None else str(key)): [e.id for e in group]
                for key, group in by_employee.items()
            },
            "dailyStats": {day.isoformat(): daily_stats(day_events) for day, day_events in by_day.items()},
            "resources": resources,
            "dateRange": {"start": to_utc(start).isoformat(), "end": to_utc(end).isoformat()},
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_job(self, data: JobCreate) -> Job:
        """Create a job after required-field, duplicate, past-date and pay checks"""
        logger.info(f"📥 Creating job for customer_id: {data.customerId}")

        if data.planId is None or not (data.location or "").strip() or not data.assignments:
            raise HTTPException(status_code=400, detail="Plan, client address, and assigned staff are required")
        if data.customerId is None:
            raise HTTPException(status_code=400, detail="Customer is required")

        customer = self.repo.get_customer(self.db, data.customerId)
        if not customer:
            raise HTTPException(status_code=404, detail="Customer not found")
        plan = self.repo.get_plan(self.db, data.planId)
        if not plan:
            raise HTTPException(status_code=404, detail="Cleaning plan not found")

        employee_ids = [a.employeeId for a in data.assignments]
        employees = {e.id: e for e in self.repo.get_employees(self.db, employee_ids, active_only=False)}
        missing = [eid for eid in employee_ids if eid not in employees]
        if missing:
            raise HTTPException(status_code=404, detail=f"Employee not found: {missing[0]}")

        scheduled_for = to_utc(data.scheduledFor)

        if not data.allowDuplicate and self.repo.find_duplicates(self.db, customer.id, scheduled_for):
            logger.warning(f"⚠️ Duplicate job for customer {customer.id} at {scheduled_for.isoformat()}")
            raise conflict(
                "A job for this customer already exists at this time",
                "duplicate_job",
                "allowDuplicate",
            )

        back_create = data.backCreateComplete
        if scheduled_for < self.now() and not (data.allowPast or back_create):
            raise conflict("The scheduled date is in the past", "past_date", "allowPast")

        for assignment in data.assignments:
            employee = employees[assignment.employeeId]
            if employee.pay_type == "per_job" and assignment.payAmount is None:
                raise conflict(
                    f"{employee.name} is paid per job; a pay amount is required",
                    "pay_amount_required",
                )
            if assignment.payAmount is not None and assignment.payAmount < 0:
                raise HTTPException(status_code=400, detail="Pay amount cannot be negative")
            if assignment.payAmount is not None and plan.price is not None and assignment.payAmount > plan.price:
                raise HTTPException(status_code=400, detail="Pay amount cannot exceed the plan price")

        duration = data.durationMinutes or parse_duration_minutes(plan.estimated_duration)
        scheduled_end = to_utc(data.scheduledEnd) if data.scheduledEnd else None
        if scheduled_end is not None and scheduled_end <= scheduled_for:
            raise HTTPException(status_code=400, detail="scheduledEnd must be after scheduledFor")

        job = self.repo.create_job(
            self.db,
            assignments=[
                {"employee_id": a.employeeId, "pay_amount": a.payAmount} for a in data.assignments
            ],
            customer_id=customer.id,
            plan_id=plan.id,
            title=data.title or plan.name,
            location=data.location.strip(),
            address_line2=data.addressLine2,
            city=data.city,
            postcode=data.postcode,
            scheduled_for=to_db(scheduled_for),
            scheduled_end=to_db(scheduled_end),
            duration_minutes=duration,
            status="completed" if back_create else "scheduled",
            completed_at=to_db(scheduled_for + timedelta(minutes=duration)) if back_create else None,
            estimated_price=data.estimatedPrice if data.estimatedPrice is not None else plan.price,
            internal_notes=data.notes,
        )
        logger.info(f"✅ Job {job.id} created ({job.status})")
        publish_jobs_changed([job.id], "created")
        return job

    async def reschedule_job(self, job_id: int, data: RescheduleRequest) -> Job:
        """Move a job to a new start; completed and cancelled jobs cannot move"""
        job = self.get_job(job_id)

        if job.status == "completed":
            raise HTTPException(status_code=400, detail="Cannot reschedule a completed job")
        if job.status == "cancelled":
            raise HTTPException(status_code=400, detail="Cannot reschedule a cancelled job")

        original = to_utc(job.scheduled_for) if job.scheduled_for else None
        new_start = to_utc(data.newDate)
        if data.newEndDate is not None:
            new_end = to_utc(data.newEndDate)
            if new_end <= new_start:
                raise HTTPException(status_code=400, detail="New end must be after the new start")
            job.scheduled_end = to_db(new_end)
            job.duration_minutes = int((new_end - new_start).total_seconds() // 60)
        elif job.scheduled_end is not None and original is not None:
            # Keep the stored length when only the start moves
            job.scheduled_end = to_db(new_start + (to_utc(job.scheduled_end) - original))

        job.scheduled_for = to_db(new_start)
        if job.status == "in-progress":
            job.status = "scheduled"

        self.repo.add_event(
            self.db,
            job,
            "rescheduled",
            f'Job "{job.title}" rescheduled from '
            f"{original.date().isoformat() if original else 'unscheduled'} to {new_start.date().isoformat()}",
            meta={
                "originalDate": original.isoformat() if original else None,
                "newDate": new_start.isoformat(),
                "reason": data.reason,
            },
        )
        job = self.repo.save(self.db, job)
        logger.info(f"✅ Job {job.id} rescheduled to {new_start.isoformat()}")
        publish_jobs_changed([job.id], "rescheduled")

        await self._send_reschedule_notices(job, original, data)
        return job

    async def assign_job(self, job_id: int, data: AssignRequest) -> Job:
        """Assign an employee to a job and put it back on the schedule"""
        job = self.get_job(job_id)
        if job.status == "completed":
            raise HTTPException(status_code=400, detail="Cannot reassign a completed job")

        employee = self.repo.get_employee(self.db, data.employeeId)
        if not employee:
            raise HTTPException(status_code=404, detail="Employee not found")
        if employee.pay_type == "per_job" and data.payAmount is None:
            raise conflict(f"{employee.name} is paid per job; a pay amount is required", "pay_amount_required")

        if employee.id not in job.assigned_employee_ids:
            job.assignments.append(JobAssignment(employee_id=employee.id, pay_amount=data.payAmount))
        job.status = "scheduled"
        self.repo.add_event(self.db, job, "job_assigned", f"Job assigned to {employee.name}")
        job = self.repo.save(self.db, job)
        logger.info(f"✅ Job {job.id} assigned to employee {employee.id}")
        publish_jobs_changed([job.id], "assigned")

        if data.sendNotification and employee.email:
            await self._send_assignment_notice(job, employee)
        return job

    # ------------------------------------------------------------------
    # Notifications (best-effort)
    # ------------------------------------------------------------------

    async def _send_reschedule_notices(self, job: Job, original: Optional[datetime], data: RescheduleRequest) -> None:
        customer = job.customer
        new_date = to_utc(job.scheduled_for)
        location = job.full_address or None

        if data.notifyCustomer and customer and customer.email:
            try:
                await send_job_rescheduled_email(
                    JobRescheduledEmailParams(
                        to=customer.email,
                        recipient_name=customer.full_name,
                        job_title=job.title,
                        original_date=original,
                        new_date=new_date,
                        reason=data.reason,
                        location=location,
                        duration_minutes=job.duration_minutes or 60,
                    )
                )
            except Exception as e:
                logger.error(f"❌ Failed to send reschedule email to customer for job {job.id}: {e}")

        if not data.notifyEmployee:
            return
        for assignment in job.assignments:
            employee = assignment.employee
            if not employee or not employee.email:
                continue
            try:
                await send_job_rescheduled_email(
                    JobRescheduledEmailParams(
                        to=employee.email,
                        recipient_name=employee.name,
                        job_title=job.title,
                        original_date=original,
                        new_date=new_date,
                        reason=data.reason,
                        location=location,
                        duration_minutes=job.duration_minutes or 60,
                        is_employee_notification=True,
                        customer_info=customer.full_name if customer else None,
                    )
                )
            except Exception as e:
                logger.error(f"❌ Failed to send reschedule email to employee {employee.id}: {e}")

    async def _send_assignment_notice(self, job: Job, employee: Employee) -> None:
        customer = job.customer
        try:
            await send_job_assignment_email(
                JobAssignmentEmailParams(
                    employee_email=employee.email,
                    employee_name=employee.name,
                    job_title=job.title,
                    scheduled_for=to_utc(job.scheduled_for) if job.scheduled_for else None,
                    address=job.full_address,
                    customer_name=customer.full_name if customer else "",
                    customer_phone=customer.phone if customer else None,
                    duration_minutes=job.duration_minutes,
                    job_description=job.description,
                    special_instructions=job.access_instructions,
                    job_id=job.id,
                )
            )
        except Exception as e:
            logger.error(f"❌ Failed to send assignment email for job {job.id}: {e}")


def lookup_bounds(start: datetime, duration_minutes: Optional[int]) -> tuple[datetime, datetime]:
    """Padded fetch range used by the availability endpoint"""
    window = lookup_window(candidate_window(start, duration_minutes))
    return window.start, window.end
