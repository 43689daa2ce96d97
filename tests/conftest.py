from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cleanops import events
from cleanops.database import Base, get_db
from cleanops.main import app
from cleanops.models import (
    CleaningPlan,
    Company,
    Customer,
    Employee,
    Job,
    JobAssignment,
    VerificationPhoto,
)

# Monday; London is on GMT in early March so local and UTC wall clocks agree
MONDAY = datetime(2030, 3, 4)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def event_bus(monkeypatch):
    fresh = events.EventBus()
    monkeypatch.setattr(events, "bus", fresh)
    return fresh


@pytest.fixture
def sent_emails(monkeypatch):
    """Replace every sender used by the endpoints with an AsyncMock"""
    mocks = {
        "assignment": AsyncMock(return_value={"id": "email-1"}),
        "rescheduled": AsyncMock(return_value={"id": "email-2"}),
        "booking_ack": AsyncMock(return_value={"id": "email-3"}),
        "booking_new": AsyncMock(return_value={"id": "email-4"}),
    }
    monkeypatch.setattr("cleanops.domain.scheduling.service.send_job_assignment_email", mocks["assignment"])
    monkeypatch.setattr("cleanops.domain.scheduling.service.send_job_rescheduled_email", mocks["rescheduled"])
    monkeypatch.setattr("cleanops.domain.bookings.service.send_booking_acknowledgment_email", mocks["booking_ack"])
    monkeypatch.setattr("cleanops.domain.bookings.service.send_new_booking_request_email", mocks["booking_new"])
    return mocks


@pytest.fixture
def client(db, event_bus, sent_emails):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# FACTORIES
# ============================================================================


@pytest.fixture
def make_customer(db):
    def _make(first_name="Dana", last_name="Reyes", email="dana@example.com", **kwargs):
        customer = Customer(first_name=first_name, last_name=last_name, email=email, **kwargs)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    return _make


@pytest.fixture
def make_employee(db):
    def _make(first_name="Sam", last_name="Okafor", email=None, pay_type="hourly", hourly_rate=15.0, **kwargs):
        employee = Employee(
            first_name=first_name,
            last_name=last_name,
            email=email or f"{first_name.lower()}@cleanops.test",
            pay_type=pay_type,
            hourly_rate=hourly_rate,
            **kwargs,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    return _make


@pytest.fixture
def make_plan(db):
    def _make(name="Standard Clean", estimated_duration="2h", price=80.0):
        plan = CleaningPlan(name=name, estimated_duration=estimated_duration, price=price)
        db.add(plan)
        db.commit()
        db.refresh(plan)
        return plan

    return _make


@pytest.fixture
def make_job(db):
    def _make(
        scheduled_for=MONDAY.replace(hour=10),
        duration_minutes=60,
        status="scheduled",
        employees=(),
        customer=None,
        scheduled_end=None,
        **kwargs,
    ):
        job = Job(
            title=kwargs.pop("title", "Office clean"),
            customer_id=customer.id if customer else None,
            scheduled_for=scheduled_for,
            scheduled_end=scheduled_end,
            duration_minutes=duration_minutes,
            status=status,
            **kwargs,
        )
        job.assignments = [JobAssignment(employee_id=e.id) for e in employees]
        db.add(job)
        db.commit()
        db.refresh(job)
        return job

    return _make


@pytest.fixture
def make_company(db):
    def _make(name="Sparkle Ltd", email="office@sparkle.test", **kwargs):
        company = Company(name=name, email=email, **kwargs)
        db.add(company)
        db.commit()
        db.refresh(company)
        return company

    return _make


@pytest.fixture
def make_photo(db):
    def _make(job, status="pending", latitude=51.5, longitude=-0.12, accuracy=8.0, **kwargs):
        photo = VerificationPhoto(
            job_id=job.id,
            verification_status=status,
            latitude=latitude,
            longitude=longitude,
            location_accuracy=accuracy,
            captured_at=kwargs.pop("captured_at", MONDAY + timedelta(hours=12)),
            **kwargs,
        )
        db.add(photo)
        db.commit()
        db.refresh(photo)
        return photo

    return _make
