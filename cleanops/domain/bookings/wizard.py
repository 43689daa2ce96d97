"""
Customer booking wizard.

Five linear steps followed by a terminal Submitted state. Moving forward is
gated on the current step's required fields; moving back never validates. Once
a booking is submitted the wizard is closed for the rest of the session.
"""

import enum
import logging
from dataclasses import dataclass, field, fields
from datetime import date
from typing import Any, Callable, Optional

import httpx

from ...client import ApiError
from ...shared.validators import is_blank
from .catalogue import estimate_price

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_ERROR = "Please fill in all required fields"
COMPANY_REQUIRED_ERROR = "Please select a cleaning company"


class WizardStep(enum.IntEnum):
    CONTACT = 1
    LOCATION = 2
    SERVICE_DETAILS = 3
    SCHEDULE = 4
    REVIEW = 5
    SUBMITTED = 6


class WizardClosed(Exception):
    """The booking was already submitted"""


@dataclass
class BookingFormData:
    # Customer info
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    # Service location
    address: str = ""
    address_line2: str = ""
    city: str = ""
    postcode: str = ""
    access_instructions: str = ""
    # Service details
    service_type: str = ""
    property_type: str = ""
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    square_footage: Optional[int] = None
    has_special_requirements: bool = False
    special_requirements: str = ""
    # Scheduling
    preferred_date: Optional[date] = None
    preferred_time_slot: str = ""
    alternate_date: Optional[date] = None
    frequency: str = "one_time"


STEP_REQUIREMENTS: dict[WizardStep, tuple[str, ...]] = {
    WizardStep.CONTACT: ("first_name", "last_name", "email", "phone"),
    WizardStep.LOCATION: ("address", "city", "postcode"),
    WizardStep.SERVICE_DETAILS: ("service_type", "property_type"),
    WizardStep.SCHEDULE: ("preferred_date", "preferred_time_slot"),
}

FORM_FIELDS = {f.name for f in fields(BookingFormData)}


def missing_fields(form: BookingFormData, step: WizardStep) -> list[str]:
    return [name for name in STEP_REQUIREMENTS.get(step, ()) if is_blank(getattr(form, name))]


# Posts the request body; raises on failure (ApiError carries the server message)
BookingPoster = Callable[[dict], Any]


@dataclass
class BookingWizard:
    form: BookingFormData = field(default_factory=BookingFormData)
    company_id: Optional[int] = None
    customer_id: Optional[int] = None
    step: WizardStep = WizardStep.CONTACT
    error: str = ""
    loading: bool = False
    result: Any = None

    @property
    def submitted(self) -> bool:
        return self.step is WizardStep.SUBMITTED

    def _ensure_open(self) -> None:
        if self.submitted:
            raise WizardClosed("This booking has already been submitted")

    def update(self, **values) -> None:
        self._ensure_open()
        unknown = set(values) - FORM_FIELDS
        if unknown:
            raise ValueError(f"Unknown booking fields: {', '.join(sorted(unknown))}")
        for name, value in values.items():
            setattr(self.form, name, value)

    def select_company(self, company_id: Optional[int]) -> None:
        self._ensure_open()
        self.company_id = company_id

    def can_advance(self) -> bool:
        return not missing_fields(self.form, self.step)

    def next_step(self) -> bool:
        """Advance one step if the current one is complete; the review step goes no further"""
        self._ensure_open()
        if self.step >= WizardStep.REVIEW:
            return False
        if not self.can_advance():
            self.error = REQUIRED_FIELDS_ERROR
            return False
        self.step = WizardStep(self.step + 1)
        self.error = ""
        return True

    def prev_step(self) -> bool:
        self._ensure_open()
        if self.step <= WizardStep.CONTACT:
            return False
        self.step = WizardStep(self.step - 1)
        self.error = ""
        return True

    def estimate(self) -> int:
        return estimate_price(self.form.service_type, self.form.bedrooms, self.form.bathrooms)

    def to_payload(self) -> dict:
        form = self.form
        return {
            "companyId": self.company_id,
            "customerId": self.customer_id,
            "customerFirstName": form.first_name,
            "customerLastName": form.last_name,
            "customerEmail": form.email,
            "customerPhone": form.phone,
            "address": form.address,
            "addressLine2": form.address_line2,
            "city": form.city,
            "postcode": form.postcode,
            "accessInstructions": form.access_instructions,
            "serviceType": form.service_type,
            "propertyType": form.property_type,
            "bedrooms": form.bedrooms,
            "bathrooms": form.bathrooms,
            "squareFootage": form.square_footage,
            "hasSpecialRequirements": form.has_special_requirements,
            "specialRequirements": form.special_requirements,
            "preferredDate": form.preferred_date.isoformat() if form.preferred_date else None,
            "preferredTimeSlot": form.preferred_time_slot,
            "alternateDate": form.alternate_date.isoformat() if form.alternate_date else None,
            "frequency": form.frequency,
            "estimatedPrice": self.estimate(),
            "source": "portal" if self.customer_id else "website",
        }

    def submit(self, post: BookingPoster) -> bool:
        """
        Post the booking from the review step.

        On success the wizard becomes Submitted and every further call raises
        WizardClosed. On failure the server's message is kept in `error` and the
        wizard stays on the review step.
        """
        self._ensure_open()
        if self.step is not WizardStep.REVIEW:
            self.error = REQUIRED_FIELDS_ERROR
            return False
        if not self.company_id:
            self.error = COMPANY_REQUIRED_ERROR
            return False

        self.loading = True
        self.error = ""
        try:
            self.result = post(self.to_payload())
        except (ApiError, httpx.HTTPError) as e:
            message = e.message if isinstance(e, ApiError) else "Failed to submit booking request"
            logger.warning(f"⚠️ Booking submission failed: {message}")
            self.error = message
            return False
        finally:
            self.loading = False

        self.step = WizardStep.SUBMITTED
        logger.info(f"✅ Booking request submitted for company {self.company_id}")
        return True
