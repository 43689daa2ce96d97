"""Field checks shared by the booking endpoint and the dashboard-side forms"""

import re
from typing import Optional

EMAIL_RE = re.compile(r"^[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}$")
MIN_PHONE_DIGITS = 7


def validate_email(address: Optional[str]) -> Optional[str]:
    """
    Trimmed, lower-cased address; empty input passes through.

    Raises:
        ValueError: If the address does not look like local@domain.tld
    """
    if not address:
        return address

    normalized = address.strip().lower()
    if not EMAIL_RE.match(normalized):
        raise ValueError("Invalid email format")
    return normalized


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a phone number for storage.

    Keeps a leading "+" and the digits; at least 7 digits are required.

    Raises:
        ValueError: If the number has too few digits
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)
    if len(digits) < MIN_PHONE_DIGITS:
        raise ValueError("Phone number is too short")

    return f"+{digits}" if phone.strip().startswith("+") else digits


def is_blank(value) -> bool:
    """True for None, empty strings and whitespace-only strings"""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False
