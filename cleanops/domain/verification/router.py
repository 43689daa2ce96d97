"""Verification router - Photo review endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import (
    BulkVerifyRequest,
    BulkVerifyResponse,
    PhotoVerifyRequest,
    PhotoVerifyResponse,
    VerificationCenterResponse,
)
from .service import VerificationService

router = APIRouter(tags=["Verification"])


def get_verification_service(db: Session = Depends(get_db)) -> VerificationService:
    """Dependency injection for VerificationService"""
    return VerificationService(db)


@router.post("/photos/bulk-verify", response_model=BulkVerifyResponse)
async def bulk_verify_photos(
    data: BulkVerifyRequest,
    service: VerificationService = Depends(get_verification_service),
):
    """Verify or reject several photos at once; all change or none do"""
    return service.bulk_verify(data)


@router.patch("/photos/{photo_id}/verify", response_model=PhotoVerifyResponse)
async def verify_photo(
    photo_id: int,
    data: PhotoVerifyRequest,
    service: VerificationService = Depends(get_verification_service),
):
    return service.verify_photo(photo_id, data)


@router.get("/verification-center", response_model=VerificationCenterResponse)
async def get_verification_center(
    employeeId: Optional[int] = Query(None),
    service: VerificationService = Depends(get_verification_service),
):
    return service.get_verification_center(employeeId)
