"""
Datetime helpers.
Instants are stored as naive UTC; business-facing times are rendered in the
business's own timezone.
"""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (storage format)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize to naive UTC; naive input is taken as UTC already"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_local(value: datetime, tz_name: str) -> datetime:
    """Convert a naive UTC instant to an aware datetime in ``tz_name``"""
    return value.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(tz_name))


def validate_timezone(tz_name: str) -> str:
    """Validate an IANA timezone name"""
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone '{tz_name}'") from e
    return tz_name
