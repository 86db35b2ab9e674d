"""Central time utilities for the application.

Timestamps are stored as naive UTC datetimes (TIMESTAMP WITHOUT TIME ZONE).
Curfew rules, however, are expressed in the building's local wall-clock time,
so this module also converts between stored UTC values and the configured
local timezone.
"""
from datetime import datetime, timezone, tzinfo
from typing import Optional

from dateutil import tz

from rentalhub.core.config import settings


def utc_now() -> datetime:
    """Return current UTC time as a naive datetime object.

    Replaces datetime.utcnow() while staying compatible with naive DateTime
    columns, avoiding "can't compare offset-naive and offset-aware
    datetimes" errors.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_local_timezone(name: Optional[str] = None) -> tzinfo:
    """Resolve a timezone name, defaulting to CURFEW_TIMEZONE."""
    zone = tz.gettz(name or settings.CURFEW_TIMEZONE)
    if zone is None:
        raise ValueError(f"Unknown timezone: {name or settings.CURFEW_TIMEZONE}")
    return zone


def to_local(value: datetime, zone: Optional[tzinfo] = None) -> datetime:
    """Convert a naive UTC datetime to an aware datetime in the local timezone."""
    zone = zone or get_local_timezone()
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(zone)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive input is assumed to be UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
