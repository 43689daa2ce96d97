"""Scheduling domain schemas - Pydantic models for job windows and calendar"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class AssignmentInput(BaseModel):
    employeeId: int
    payAmount: Optional[float] = None


class JobCreate(BaseModel):
    """Schema for creating a job from the create-job dialog"""

    customerId: Optional[int] = None
    planId: Optional[int] = None
    title: Optional[str] = None
    location: Optional[str] = None
    addressLine2: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    scheduledFor: datetime
    scheduledEnd: Optional[datetime] = None
    durationMinutes: Optional[int] = Field(default=None, ge=1)
    assignments: list[AssignmentInput] = Field(default_factory=list)
    estimatedPrice: Optional[float] = None
    notes: Optional[str] = None

    # Conflict override flags, set after the user confirms
    allowDuplicate: bool = False
    allowPast: bool = False
    backCreateComplete: bool = False


class RescheduleRequest(BaseModel):
    newDate: datetime
    newEndDate: Optional[datetime] = None
    reason: Optional[str] = None
    notifyCustomer: bool = True
    notifyEmployee: bool = True

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v):
        return v.strip() if v else v


class AssignRequest(BaseModel):
    employeeId: int
    sendNotification: bool = True
    payAmount: Optional[float] = None


class AssignmentResponse(BaseModel):
    employeeId: int
    employeeName: Optional[str] = None
    payAmount: Optional[float] = None


class JobResponse(BaseModel):
    """Job as returned by the window read and write endpoints"""

    id: int
    title: str
    status: str
    customerId: Optional[int] = None
    customerName: Optional[str] = None
    planId: Optional[int] = None
    location: Optional[str] = None
    scheduledFor: Optional[datetime] = None
    scheduledEnd: Optional[datetime] = None
    durationMinutes: Optional[int] = None
    assignedEmployeeIds: list[int] = Field(default_factory=list)
    assignments: list[AssignmentResponse] = Field(default_factory=list)
    estimatedPrice: Optional[float] = None
    actualPrice: Optional[float] = None
    completedAt: Optional[datetime] = None

    class Config:
        from_attributes = True


class AvailabilityResponse(BaseModel):
    start: datetime
    end: datetime
    lookupStart: datetime
    lookupEnd: datetime
    statuses: dict[str, str]
    busyEmployeeIds: list[int]


class CalendarResource(BaseModel):
    id: int
    name: str
    color: str
    role: Optional[str] = None
