"""Verification service - Photo review and verification center rollups"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import Job, VerificationPhoto
from ...shared.timeutils import to_db
from ..reporting.service import session_hours
from .repository import VerificationRepository
from .schemas import BulkVerifyRequest, PhotoVerifyRequest
from .scoring import (
    JobPhotoSummary,
    employee_stats,
    gps_accuracy_status,
    round_half_up,
    summary,
    verification_score,
)

logger = logging.getLogger(__name__)


def photo_to_dict(photo: VerificationPhoto) -> dict:
    return {
        "id": photo.id,
        "jobId": photo.job_id,
        "employeeId": photo.employee_id,
        "taskName": photo.task_name,
        "photoUrl": photo.photo_url,
        "verificationStatus": photo.verification_status,
        "latitude": photo.latitude,
        "longitude": photo.longitude,
        "locationAccuracy": photo.location_accuracy,
        "gpsAccuracy": gps_accuracy_status(photo.latitude, photo.longitude, photo.location_accuracy).value,
        "notes": photo.notes,
        "capturedAt": photo.captured_at,
        "verifiedAt": photo.verified_at,
    }


class VerificationService:
    """Service layer for photo verification business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = VerificationRepository()

    def _apply_status(self, photo: VerificationPhoto, status: str, rejection_reason: Optional[str], now: datetime):
        photo.verification_status = status
        photo.verified_at = None if status == "pending" else to_db(now)
        if status != "rejected":
            photo.notes = None
        elif rejection_reason:
            photo.notes = rejection_reason

    def verify_photo(self, photo_id: int, data: PhotoVerifyRequest) -> dict:
        photo = self.repo.get_photo(self.db, photo_id)
        if not photo:
            raise HTTPException(status_code=404, detail="Photo not found")

        self._apply_status(photo, data.status, data.rejectionReason, datetime.now(timezone.utc))
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to verify photo {photo_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to verify photo")
        self.db.refresh(photo)
        logger.info(f"✅ Photo {photo_id} marked {data.status}")
        return {"success": True, "photo": photo_to_dict(photo)}

    def bulk_verify(self, data: BulkVerifyRequest) -> dict:
        """
        Apply one status to every photo in a single transaction.

        Either every id exists and all photos change together, or nothing is
        written: an unknown id is a 404 and a database error rolls the whole
        batch back.
        """
        photos = self.repo.get_photos(self.db, data.photoIds)
        found = {p.id for p in photos}
        missing = [pid for pid in data.photoIds if pid not in found]
        if missing:
            raise HTTPException(
                status_code=404,
                detail=f"Photos not found: {', '.join(str(pid) for pid in missing)}",
            )

        now = datetime.now(timezone.utc)
        try:
            for photo in photos:
                self._apply_status(photo, data.status, data.rejectionReason, now)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Bulk verification of {len(photos)} photos failed: {e}")
            raise HTTPException(status_code=500, detail="Failed to verify photos")

        for photo in photos:
            self.db.refresh(photo)
        logger.info(f"✅ Bulk marked {len(photos)} photos {data.status}")
        return {"success": True, "updatedCount": len(photos), "photos": [photo_to_dict(p) for p in photos]}

    def _job_durations(self, jobs: list[Job]) -> dict[int, int]:
        minutes: dict[int, float] = {}
        for session in self.repo.get_work_sessions_for_jobs(self.db, [j.id for j in jobs]):
            minutes[session.job_id] = minutes.get(session.job_id, 0) + session_hours(session) * 60
        return {job_id: round_half_up(total) for job_id, total in minutes.items() if total > 0}

    def get_verification_center(self, employee_id: Optional[int] = None) -> dict:
        """Completed jobs with their photos, scored, plus per-employee and overall counts"""
        jobs = self.repo.get_completed_jobs_with_photos(self.db, employee_id)
        durations = self._job_durations(jobs)

        job_rows = []
        summaries = []
        names: dict[int, str] = {}
        for job in jobs:
            photos = sorted(job.photos, key=lambda p: (p.captured_at or datetime.min, p.id), reverse=True)
            statuses = [p.verification_status for p in photos]
            employee = job.primary_assignee
            if employee is not None:
                names[employee.id] = employee.name

            summaries.append(
                JobPhotoSummary(
                    job_id=job.id,
                    employee_id=employee.id if employee else None,
                    statuses=statuses,
                    duration_minutes=durations.get(job.id),
                )
            )
            job_rows.append(
                {
                    "id": job.id,
                    "title": job.title,
                    "location": job.location,
                    "city": job.city,
                    "postcode": job.postcode,
                    "scheduledFor": job.scheduled_for,
                    "completedAt": job.completed_at,
                    "status": job.status,
                    "estimatedPrice": job.estimated_price,
                    "employee": (
                        {"id": employee.id, "name": employee.name, "email": employee.email} if employee else None
                    ),
                    "customer": (
                        {"id": job.customer.id, "name": job.customer.full_name, "email": job.customer.email}
                        if job.customer
                        else None
                    ),
                    "photos": [photo_to_dict(p) for p in photos],
                    "jobDuration": durations.get(job.id),
                    "verificationScore": verification_score(statuses),
                }
            )

        stats = employee_stats(summaries)
        for stat in stats:
            stat["employeeName"] = names.get(stat["employeeId"])

        return {"jobs": job_rows, "employeeStats": stats, "summary": summary(summaries)}
