"""Shared validation utilities"""

import re
import unicodedata
from typing import Optional

HHMM_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
PHONE_PATTERN = re.compile(r"^[0-9+\-\s()]{7,20}$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")

    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a local or international phone number.

    Digits, spaces, dashes, parentheses and a leading + are accepted,
    7 to 20 characters long. Returns the trimmed value.
    """
    if not phone:
        return phone

    phone = phone.strip()
    if not PHONE_PATTERN.match(phone):
        raise ValueError("Invalid phone number")

    return phone


def validate_hhmm(value: Optional[str]) -> Optional[str]:
    """Validate a HH:MM time-of-day string and zero-pad the hour"""
    if value is None:
        return value

    value = value.strip()
    if not HHMM_PATTERN.match(value):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")

    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


def hhmm_to_minutes(value: str) -> int:
    """Minutes since midnight for a HH:MM string"""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def slugify(value: str) -> str:
    """URL-friendly slug: lowercase ascii words joined by dashes"""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return slug or "business"
