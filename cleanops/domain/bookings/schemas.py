"""Booking domain schemas - Pydantic models for portal booking requests"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import normalize_phone


class BookingRequestCreate(BaseModel):
    """Flat body posted by the booking wizard; required fields are checked in the service"""

    companyId: Optional[int] = None
    customerId: Optional[int] = None
    customerFirstName: Optional[str] = None
    customerLastName: Optional[str] = None
    customerEmail: Optional[str] = None
    customerPhone: Optional[str] = None
    address: Optional[str] = None
    addressLine2: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    accessInstructions: Optional[str] = None
    serviceType: Optional[str] = None
    propertyType: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    squareFootage: Optional[int] = None
    hasSpecialRequirements: Optional[bool] = None
    specialRequirements: Optional[str] = None
    preferredDate: Optional[datetime] = None
    preferredTimeSlot: Optional[str] = None
    alternateDate: Optional[datetime] = None
    frequency: Optional[str] = None
    estimatedPrice: Optional[float] = None
    source: Optional[str] = None

    @field_validator("customerPhone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return normalize_phone(v)
        return v


class ExistingCustomer(BaseModel):
    id: int
    firstName: str
    lastName: str
    email: Optional[str] = None


class BookingRequestResponse(BaseModel):
    """Schema for booking request response"""

    id: int
    companyId: int
    customerId: Optional[int]
    customerFirstName: str
    customerLastName: str
    customerEmail: str
    customerPhone: Optional[str]
    address: str
    addressLine2: Optional[str] = None
    city: Optional[str]
    postcode: Optional[str]
    serviceType: str
    propertyType: Optional[str]
    bedrooms: Optional[int]
    bathrooms: Optional[int]
    specialRequirements: Optional[str] = None
    preferredDate: Optional[datetime]
    preferredTimeSlot: Optional[str]
    alternateDate: Optional[datetime] = None
    frequency: Optional[str]
    estimatedPrice: Optional[float]
    source: Optional[str]
    status: str
    created_at: Optional[datetime] = None
    existingCustomer: Optional[ExistingCustomer] = None

    class Config:
        from_attributes = True
