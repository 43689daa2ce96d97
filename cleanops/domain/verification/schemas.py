"""Verification domain schemas - Pydantic models for photo review"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from .scoring import PHOTO_STATUSES


def _check_status(v: str) -> str:
    if v not in PHOTO_STATUSES:
        raise ValueError("Invalid status")
    return v


class PhotoVerifyRequest(BaseModel):
    status: str
    rejectionReason: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return _check_status(v)


class BulkVerifyRequest(BaseModel):
    photoIds: list[int]
    status: str
    rejectionReason: Optional[str] = None

    @field_validator("photoIds")
    @classmethod
    def validate_photo_ids(cls, v):
        if not v:
            raise ValueError("No photo IDs provided")
        # Duplicates would otherwise be counted twice against the found set
        return list(dict.fromkeys(v))

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return _check_status(v)


class PhotoResponse(BaseModel):
    id: int
    jobId: int
    employeeId: Optional[int] = None
    taskName: Optional[str] = None
    photoUrl: Optional[str] = None
    verificationStatus: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    locationAccuracy: Optional[float] = None
    gpsAccuracy: str
    notes: Optional[str] = None
    capturedAt: Optional[datetime] = None
    verifiedAt: Optional[datetime] = None


class PhotoVerifyResponse(BaseModel):
    success: bool
    photo: PhotoResponse


class BulkVerifyResponse(BaseModel):
    success: bool
    updatedCount: int
    photos: list[PhotoResponse]


class PersonSummary(BaseModel):
    id: int
    name: str
    email: Optional[str] = None


class VerificationJob(BaseModel):
    id: int
    title: str
    location: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    scheduledFor: Optional[datetime] = None
    completedAt: Optional[datetime] = None
    status: str
    estimatedPrice: Optional[float] = None
    employee: Optional[PersonSummary] = None
    customer: Optional[PersonSummary] = None
    photos: list[PhotoResponse]
    jobDuration: Optional[int] = None
    verificationScore: int


class EmployeeVerificationStats(BaseModel):
    employeeId: int
    employeeName: Optional[str] = None
    totalJobs: int
    totalPhotos: int
    verifiedPhotos: int
    rejectedPhotos: int
    pendingPhotos: int
    avgJobDuration: int
    avgPhotosPerJob: float
    verificationRate: int


class VerificationSummary(BaseModel):
    totalJobs: int
    totalPhotos: int
    pendingPhotos: int
    verifiedPhotos: int
    rejectedPhotos: int


class VerificationCenterResponse(BaseModel):
    jobs: list[VerificationJob]
    employeeStats: list[EmployeeVerificationStats]
    summary: VerificationSummary
