"""Scheduling router - FastAPI endpoints for jobs, availability and the calendar"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import Job
from ...shared.timeutils import parse_instant, to_utc
from .schemas import (
    AssignmentResponse,
    AssignRequest,
    AvailabilityResponse,
    JobCreate,
    JobResponse,
    RescheduleRequest,
)
from .service import SchedulingService, lookup_bounds

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Scheduling"])


def get_scheduling_service(db: Session = Depends(get_db)) -> SchedulingService:
    """Dependency injection for SchedulingService"""
    return SchedulingService(db)


def _instant_param(value: Optional[str], name: str) -> Optional[datetime]:
    if value is None:
        return None
    parsed = parse_instant(value)
    if parsed is None:
        raise HTTPException(status_code=400, detail=f"Invalid {name}: expected an ISO-8601 instant")
    return parsed


def to_job_response(job: Job) -> JobResponse:
    customer = job.customer
    return JobResponse(
        id=job.id,
        title=job.title,
        status=job.status,
        customerId=job.customer_id,
        customerName=customer.full_name if customer else None,
        planId=job.plan_id,
        location=job.location,
        scheduledFor=to_utc(job.scheduled_for) if job.scheduled_for else None,
        scheduledEnd=to_utc(job.scheduled_end) if job.scheduled_end else None,
        durationMinutes=job.duration_minutes,
        assignedEmployeeIds=job.assigned_employee_ids,
        assignments=[
            AssignmentResponse(
                employeeId=a.employee_id,
                employeeName=a.employee.name if a.employee else None,
                payAmount=a.pay_amount,
            )
            for a in job.assignments
        ],
        estimatedPrice=job.estimated_price,
        actualPrice=job.actual_price,
        completedAt=to_utc(job.completed_at) if job.completed_at else None,
    )


# ============================================================================
# JOB WINDOW READS
# ============================================================================


@router.get("/jobs", response_model=list[JobResponse])
async def get_jobs(
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    customerId: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    assignedTo: Optional[int] = Query(None),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Jobs whose start falls in [startDate, endDate], optionally filtered"""
    jobs = service.get_jobs(
        _instant_param(startDate, "startDate"),
        _instant_param(endDate, "endDate"),
        customerId,
        status,
        assignedTo,
    )
    return [to_job_response(job) for job in jobs]


@router.get("/jobs/calendar")
async def get_calendar(
    start: str = Query(...),
    end: str = Query(...),
    employeeId: Optional[int] = Query(None),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Calendar events, day and employee groupings, daily stats and staff resources"""
    return service.get_calendar(_instant_param(start, "start"), _instant_param(end, "end"), employeeId)


@router.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job(job_id: int, service: SchedulingService = Depends(get_scheduling_service)):
    return to_job_response(service.get_job(job_id))


@router.get("/scheduling/availability", response_model=AvailabilityResponse)
async def get_availability(
    start: str = Query(...),
    durationMinutes: Optional[int] = Query(None, ge=1),
    excludeJobId: Optional[int] = Query(None),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Busy/available per active employee for a candidate window"""
    start_at = _instant_param(start, "start")
    result = service.get_availability(start_at, durationMinutes, excludeJobId)
    lookup_start, lookup_end = lookup_bounds(start_at, durationMinutes)
    return AvailabilityResponse(
        start=result.window.start,
        end=result.window.end,
        lookupStart=lookup_start,
        lookupEnd=lookup_end,
        statuses=result.to_dict(),
        busyEmployeeIds=sorted(result.busy_ids()),
    )


# ============================================================================
# JOB WRITES
# ============================================================================


@router.post("/jobs", response_model=JobResponse, status_code=201)
async def create_job(data: JobCreate, service: SchedulingService = Depends(get_scheduling_service)):
    """Create a job; conflicts return 409 with an override flag"""
    return to_job_response(service.create_job(data))


@router.post("/jobs/{job_id}/reschedule")
async def reschedule_job(
    job_id: int,
    data: RescheduleRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    job = await service.reschedule_job(job_id, data)
    return {
        "success": True,
        "message": "Job rescheduled successfully",
        "job": to_job_response(job),
    }


@router.post("/jobs/{job_id}/assign")
async def assign_job(
    job_id: int,
    data: AssignRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    job = await service.assign_job(job_id, data)
    return {
        "success": True,
        "message": "Job assigned successfully",
        "job": to_job_response(job),
    }
