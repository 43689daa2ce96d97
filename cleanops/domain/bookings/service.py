"""Booking service - Portal booking request intake"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import DEFAULT_CURRENCY
from ...email_service import (
    BookingAcknowledgmentParams,
    NewBookingRequestParams,
    send_booking_acknowledgment_email,
    send_new_booking_request_email,
)
from ...models import BookingRequest, Customer
from ...shared.timeutils import to_db
from ...shared.validators import is_blank, validate_email
from .catalogue import estimate_price, service_label
from .repository import BookingRepository
from .schemas import BookingRequestCreate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "companyId",
    "customerFirstName",
    "customerLastName",
    "customerEmail",
    "address",
    "serviceType",
)


def booking_to_dict(booking: BookingRequest, existing_customer: Optional[Customer] = None) -> dict:
    data = {
        "id": booking.id,
        "companyId": booking.company_id,
        "customerId": booking.customer_id,
        "customerFirstName": booking.customer_first_name,
        "customerLastName": booking.customer_last_name,
        "customerEmail": booking.customer_email,
        "customerPhone": booking.customer_phone,
        "address": booking.address,
        "addressLine2": booking.address_line2,
        "city": booking.city,
        "postcode": booking.postcode,
        "serviceType": booking.service_type,
        "propertyType": booking.property_type,
        "bedrooms": booking.bedrooms,
        "bathrooms": booking.bathrooms,
        "specialRequirements": booking.special_requirements,
        "preferredDate": booking.preferred_date,
        "preferredTimeSlot": booking.preferred_time_slot,
        "alternateDate": booking.alternate_date,
        "frequency": booking.frequency,
        "estimatedPrice": booking.estimated_price,
        "source": booking.source,
        "status": booking.status,
        "created_at": booking.created_at,
    }
    if existing_customer is not None:
        data["existingCustomer"] = {
            "id": existing_customer.id,
            "firstName": existing_customer.first_name,
            "lastName": existing_customer.last_name,
            "email": existing_customer.email,
        }
    return data


class BookingService:
    """Service layer for booking request business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def _resolve_customer(self, data: BookingRequestCreate, email: str) -> tuple[Customer, bool]:
        """Portal customer by id, else match on lower-cased email, else a new customer record"""
        if data.customerId:
            customer = self.repo.get_customer(self.db, data.customerId)
            if customer:
                return customer, True

        customer = self.repo.get_customer_by_email(self.db, email)
        if customer:
            return customer, True

        customer = self.repo.create_customer(
            self.db,
            first_name=data.customerFirstName.strip(),
            last_name=data.customerLastName.strip(),
            email=email,
            phone=data.customerPhone,
            address=data.address,
            address_line2=data.addressLine2,
            city=data.city,
            postcode=data.postcode,
            access_instructions=data.accessInstructions,
            source=data.source or "website",
        )
        logger.info(f"✅ Created customer {customer.id} from booking request")
        return customer, False

    async def create_booking_request(self, data: BookingRequestCreate) -> dict:
        missing = [name for name in REQUIRED_FIELDS if is_blank(getattr(data, name))]
        if missing:
            raise HTTPException(status_code=400, detail="Missing required fields")

        try:
            email = validate_email(data.customerEmail)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        company = self.repo.get_company(self.db, data.companyId)
        if not company:
            raise HTTPException(status_code=404, detail="Company not found")

        customer, existed = self._resolve_customer(data, email)

        estimated = data.estimatedPrice
        if estimated is None:
            estimated = estimate_price(data.serviceType, data.bedrooms, data.bathrooms)

        special = data.specialRequirements if data.hasSpecialRequirements is not False else None

        booking = self.repo.create_booking_request(
            self.db,
            company_id=company.id,
            customer_id=customer.id,
            customer_first_name=data.customerFirstName.strip(),
            customer_last_name=data.customerLastName.strip(),
            customer_email=email,
            customer_phone=data.customerPhone,
            address=data.address.strip(),
            address_line2=data.addressLine2,
            city=data.city,
            postcode=data.postcode,
            access_instructions=data.accessInstructions,
            service_type=data.serviceType,
            property_type=data.propertyType,
            bedrooms=data.bedrooms,
            bathrooms=data.bathrooms,
            square_footage=data.squareFootage,
            special_requirements=special,
            preferred_date=to_db(data.preferredDate) if data.preferredDate else None,
            preferred_time_slot=data.preferredTimeSlot,
            alternate_date=to_db(data.alternateDate) if data.alternateDate else None,
            frequency=data.frequency or "one_time",
            estimated_price=estimated,
            source=data.source or "website",
            status="pending",
        )
        logger.info(f"✅ Booking request {booking.id} created for company {company.id}")

        customer_name = f"{booking.customer_first_name} {booking.customer_last_name}"
        service_name = service_label(booking.service_type)

        try:
            await send_booking_acknowledgment_email(
                BookingAcknowledgmentParams(
                    to=booking.customer_email,
                    customer_name=customer_name,
                    service_type=service_name,
                    preferred_date=booking.preferred_date,
                    preferred_time_slot=booking.preferred_time_slot,
                    address=booking.address,
                    city=booking.city,
                    postcode=booking.postcode,
                    estimated_price=booking.estimated_price,
                    currency=DEFAULT_CURRENCY,
                    frequency=booking.frequency,
                    company_name=company.name,
                    company_phone=company.phone,
                    company_email=company.email,
                    booking_id=booking.id,
                )
            )
        except Exception as e:
            logger.error(f"❌ Failed to send booking acknowledgment for request {booking.id}: {e}")

        if company.email:
            try:
                await send_new_booking_request_email(
                    NewBookingRequestParams(
                        company_email=company.email,
                        customer_name=customer_name,
                        customer_email=booking.customer_email,
                        customer_phone=booking.customer_phone,
                        service_type=service_name,
                        preferred_date=booking.preferred_date,
                        preferred_time_slot=booking.preferred_time_slot,
                        address=booking.address,
                        city=booking.city,
                        postcode=booking.postcode,
                        estimated_price=booking.estimated_price,
                        currency=DEFAULT_CURRENCY,
                        frequency=booking.frequency,
                        special_requirements=booking.special_requirements,
                        company_name=company.name,
                        booking_id=booking.id,
                    )
                )
            except Exception as e:
                logger.error(f"❌ Failed to notify company {company.id} of booking request {booking.id}: {e}")

        return booking_to_dict(booking, customer if existed else None)

    def list_booking_requests(self, status: Optional[str] = None, limit: int = 50) -> list[dict]:
        return [booking_to_dict(b) for b in self.repo.get_booking_requests(self.db, status, limit)]
