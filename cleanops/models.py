from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Company(Base):
    """Cleaning company (service provider) selectable from the customer portal"""

    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)  # Receives new booking request notifications
    phone = Column(String(50), nullable=True)
    city = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    booking_requests = relationship("BookingRequest", back_populates="company")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), index=True, nullable=True)  # Stored lower-cased
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    postcode = Column(String(20), nullable=True)
    access_instructions = Column(Text, nullable=True)
    customer_type = Column(String(50), default="residential")
    status = Column(String(50), default="active")
    source = Column(String(50), nullable=True)  # portal, website, manual
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    jobs = relationship("Job", back_populates="customer")

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    role = Column(String(50), nullable=True)  # cleaner, supervisor, manager
    color = Column(String(7), nullable=True)  # Calendar resource colour, e.g. #RRGGBB
    pay_type = Column(String(20), default="hourly", nullable=False)  # hourly, per_job, salary
    hourly_rate = Column(Float, nullable=True)
    status = Column(String(20), default="active", nullable=False)  # active, inactive
    created_at = Column(DateTime, server_default=func.now())

    assignments = relationship("JobAssignment", back_populates="employee")
    work_sessions = relationship("WorkSession", back_populates="employee")

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class CleaningPlan(Base):
    __tablename__ = "cleaning_plans"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    estimated_duration = Column(String(50), nullable=True)  # Free text: "2h 30m", "90"
    price = Column(Float, nullable=True)
    is_active = Column(Boolean, default=True)


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    plan_id = Column(Integer, ForeignKey("cleaning_plans.id"), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Service address
    location = Column(String(500), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    postcode = Column(String(20), nullable=True)
    access_instructions = Column(Text, nullable=True)

    # Scheduling - instants stored as naive UTC
    scheduled_for = Column(DateTime, nullable=True, index=True)
    scheduled_end = Column(DateTime, nullable=True)
    duration_minutes = Column(Integer, nullable=True)

    # pending, scheduled, in-progress, completed, cancelled, rejected
    status = Column(String(50), default="scheduled", nullable=False, index=True)
    completed_at = Column(DateTime, nullable=True)

    # Pricing
    estimated_price = Column(Float, nullable=True)
    actual_price = Column(Float, nullable=True)
    currency = Column(String(10), default="GBP")

    internal_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer", back_populates="jobs")
    plan = relationship("CleaningPlan")
    assignments = relationship(
        "JobAssignment", back_populates="job", cascade="all, delete-orphan", order_by="JobAssignment.id"
    )
    events = relationship("JobEvent", back_populates="job", cascade="all, delete-orphan")
    photos = relationship("VerificationPhoto", back_populates="job", cascade="all, delete-orphan")

    @property
    def assigned_employee_ids(self) -> list[int]:
        return [a.employee_id for a in self.assignments]

    @property
    def primary_assignee(self):
        return self.assignments[0].employee if self.assignments else None

    @property
    def full_address(self) -> str:
        """Address parts joined without repeating a city/postcode already in location"""
        parts: list[str] = []
        for part in (self.location, self.address_line2, self.city, self.postcode):
            if not part:
                continue
            normalized = "".join(ch for ch in part.lower() if ch.isalnum())
            joined = "".join(ch for ch in ", ".join(parts).lower() if ch.isalnum())
            if normalized and normalized in joined:
                continue
            parts.append(part)
        return ", ".join(parts)


class JobAssignment(Base):
    """One row per employee working a job; several employees may share one job"""

    __tablename__ = "job_assignments"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    pay_amount = Column(Float, nullable=True)  # Required when the employee is paid per job
    created_at = Column(DateTime, server_default=func.now())

    job = relationship("Job", back_populates="assignments")
    employee = relationship("Employee", back_populates="assignments")


class JobEvent(Base):
    __tablename__ = "job_events"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    type = Column(String(50), nullable=False)  # created, rescheduled, job_assigned
    message = Column(String(1000), nullable=False)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    job = relationship("Job", back_populates="events")


class BookingRequest(Base):
    __tablename__ = "booking_requests"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)

    customer_first_name = Column(String(100), nullable=False)
    customer_last_name = Column(String(100), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=True)

    address = Column(String(500), nullable=False)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    postcode = Column(String(20), nullable=True)
    access_instructions = Column(Text, nullable=True)

    service_type = Column(String(50), nullable=False)
    property_type = Column(String(50), nullable=True)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    square_footage = Column(Integer, nullable=True)
    special_requirements = Column(Text, nullable=True)

    preferred_date = Column(DateTime, nullable=True)
    preferred_time_slot = Column(String(50), nullable=True)
    alternate_date = Column(DateTime, nullable=True)
    frequency = Column(String(50), default="one_time")

    estimated_price = Column(Float, nullable=True)
    source = Column(String(50), default="website")
    status = Column(String(50), default="pending", nullable=False)  # pending, converted, declined
    created_at = Column(DateTime, server_default=func.now())

    company = relationship("Company", back_populates="booking_requests")
    customer = relationship("Customer")


class VerificationPhoto(Base):
    """Job-completion photo captured on site, reviewed from the verification center"""

    __tablename__ = "verification_photos"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    task_name = Column(String(255), nullable=True)
    photo_url = Column(String(1000), nullable=True)
    verification_status = Column(String(20), default="pending", nullable=False)  # pending, verified, rejected
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    location_accuracy = Column(Float, nullable=True)  # Metres reported by the device
    notes = Column(Text, nullable=True)  # Rejection reason
    captured_at = Column(DateTime, server_default=func.now())
    verified_at = Column(DateTime, nullable=True)

    job = relationship("Job", back_populates="photos")


class WorkSession(Base):
    __tablename__ = "work_sessions"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=True)
    started_at = Column(DateTime, nullable=True)
    ended_at = Column(DateTime, nullable=True)
    duration_minutes = Column(Integer, nullable=True)

    employee = relationship("Employee", back_populates="work_sessions")


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    category = Column(String(100), nullable=True)
    description = Column(String(500), nullable=True)
    amount = Column(Float, nullable=False, default=0)
    expense_date = Column(DateTime, nullable=False)
