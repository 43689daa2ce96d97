"""Verification repository - Database operations for job photos"""

from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import Job, JobAssignment, VerificationPhoto, WorkSession


class VerificationRepository:
    """Repository for verification photo database operations"""

    @staticmethod
    def get_photo(db: Session, photo_id: int) -> Optional[VerificationPhoto]:
        return db.query(VerificationPhoto).filter(VerificationPhoto.id == photo_id).first()

    @staticmethod
    def get_photos(db: Session, photo_ids: list[int]) -> list[VerificationPhoto]:
        return (
            db.query(VerificationPhoto)
            .filter(VerificationPhoto.id.in_(photo_ids))
            .order_by(VerificationPhoto.id)
            .all()
        )

    @staticmethod
    def get_completed_jobs_with_photos(db: Session, employee_id: Optional[int] = None) -> list[Job]:
        query = (
            db.query(Job)
            .options(selectinload(Job.photos), selectinload(Job.assignments).selectinload(JobAssignment.employee))
            .filter(Job.status == "completed", Job.photos.any())
        )
        if employee_id:
            query = query.filter(Job.assignments.any(JobAssignment.employee_id == employee_id))
        return query.order_by(Job.completed_at.desc(), Job.id.desc()).all()

    @staticmethod
    def get_work_sessions_for_jobs(db: Session, job_ids: list[int]) -> list[WorkSession]:
        if not job_ids:
            return []
        return db.query(WorkSession).filter(WorkSession.job_id.in_(job_ids)).all()
