"""Instant parsing and timezone helpers shared by the scheduling and reporting domains"""

import logging
from datetime import datetime, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from ..config import BUSINESS_TIMEZONE

logger = logging.getLogger(__name__)


def business_tz() -> ZoneInfo:
    return ZoneInfo(BUSINESS_TIMEZONE)


def to_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to already be UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_db(value: Optional[datetime]) -> Optional[datetime]:
    """Naive UTC datetime as stored in the database"""
    if value is None:
        return None
    return to_utc(value).replace(tzinfo=None)


def parse_instant(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse an ISO-8601 instant into an aware UTC datetime.

    Returns None for missing or unparseable values instead of raising.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Failed to parse instant: {value!r}")
        return None
    return to_utc(parsed)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 string in UTC, None passes through"""
    if value is None:
        return None
    return to_utc(value).isoformat()
