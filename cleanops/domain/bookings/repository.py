"""Booking repository - Database operations for booking requests"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import BookingRequest, Company, Customer


class BookingRepository:
    """Repository for booking request database operations"""

    @staticmethod
    def get_company(db: Session, company_id: int) -> Optional[Company]:
        return db.query(Company).filter(Company.id == company_id).first()

    @staticmethod
    def get_customer(db: Session, customer_id: int) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.id == customer_id).first()

    @staticmethod
    def get_customer_by_email(db: Session, email: str) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.email == email.lower()).first()

    @staticmethod
    def create_customer(db: Session, **customer_data) -> Customer:
        customer = Customer(**customer_data)
        db.add(customer)
        db.flush()
        return customer

    @staticmethod
    def create_booking_request(db: Session, **request_data) -> BookingRequest:
        booking = BookingRequest(**request_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def get_booking_requests(db: Session, status: Optional[str] = None, limit: int = 50) -> list[BookingRequest]:
        query = db.query(BookingRequest).options(joinedload(BookingRequest.customer))
        if status and status != "all":
            query = query.filter(BookingRequest.status == status)
        return query.order_by(BookingRequest.created_at.desc(), BookingRequest.id.desc()).limit(limit).all()
