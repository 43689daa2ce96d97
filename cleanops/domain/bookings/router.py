"""Booking router - Customer portal booking request endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import BookingRequestCreate, BookingRequestResponse
from .service import BookingService

router = APIRouter(prefix="/booking-requests", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


@router.post("", response_model=BookingRequestResponse, status_code=201)
async def create_booking_request(
    data: BookingRequestCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Accept a booking request from the portal wizard and acknowledge it by email"""
    return await service.create_booking_request(data)


@router.get("", response_model=list[BookingRequestResponse])
async def list_booking_requests(
    status: Optional[str] = Query("pending"),
    limit: int = Query(50, ge=1, le=200),
    service: BookingService = Depends(get_booking_service),
):
    return service.list_booking_requests(status, limit)
