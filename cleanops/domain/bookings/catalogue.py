"""Service catalogue offered through the customer booking portal"""

from dataclasses import dataclass
from typing import Optional

BEDROOM_SURCHARGE = 15
BATHROOM_SURCHARGE = 10


@dataclass(frozen=True)
class ServiceType:
    value: str
    label: str
    description: str
    base_price: int


SERVICE_TYPES = [
    ServiceType("regular", "Regular Cleaning", "Standard cleaning service", 50),
    ServiceType("deep_clean", "Deep Cleaning", "Thorough deep cleaning", 120),
    ServiceType("move_in", "Move In Cleaning", "Prepare your new home", 150),
    ServiceType("move_out", "Move Out Cleaning", "Leave your old place spotless", 150),
    ServiceType("one_time", "One-Time Clean", "Single cleaning session", 70),
    ServiceType("spring_clean", "Spring Cleaning", "Seasonal deep refresh", 180),
]

PROPERTY_TYPES = {
    "apartment": "Apartment/Flat",
    "house": "House",
    "studio": "Studio",
    "office": "Office",
    "other": "Other",
}

TIME_SLOTS = {
    "morning": "Morning (8am - 12pm)",
    "afternoon": "Afternoon (12pm - 5pm)",
    "evening": "Evening (5pm - 8pm)",
    "flexible": "Flexible",
}

FREQUENCIES = {
    "one_time": "One Time",
    "weekly": "Weekly",
    "biweekly": "Every 2 Weeks",
    "monthly": "Monthly",
}


def get_service_type(value: Optional[str]) -> Optional[ServiceType]:
    return next((s for s in SERVICE_TYPES if s.value == value), None)


def service_label(value: Optional[str]) -> str:
    service = get_service_type(value)
    return service.label if service else (value or "")


def estimate_price(service_type: Optional[str], bedrooms: Optional[int] = None, bathrooms: Optional[int] = None) -> int:
    """Base price plus a flat surcharge per bedroom and bathroom; 0 for an unknown service"""
    service = get_service_type(service_type)
    if service is None:
        return 0
    return service.base_price + BEDROOM_SURCHARGE * max(bedrooms or 0, 0) + BATHROOM_SURCHARGE * max(bathrooms or 0, 0)
