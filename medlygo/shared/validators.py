"""Shared validation and formatting utilities"""

import re
from datetime import date, datetime, time
from typing import Optional

REFERENCE_NUMBER_PATTERN = re.compile(r"^MG-\d{8}-[A-Z0-9]{4}$")


def validate_reference_number(value: str) -> bool:
    """Check the MG-YYYYMMDD-XXXX booking reference format"""
    return bool(value and REFERENCE_NUMBER_PATTERN.match(value))


def parse_date(value) -> date:
    """
    Parse a YYYY-MM-DD string (or pass through a date).

    Raises:
        ValueError: If the value is not a calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError as e:
        raise ValueError("Date must be in YYYY-MM-DD format") from e


def parse_time(value) -> time:
    """
    Parse HH:MM or HH:MM:SS (or pass through a time).

    Raises:
        ValueError: If the value is not a clock time
    """
    if isinstance(value, time):
        return value
    raw = str(value).strip()
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(raw, fmt).time()
        except ValueError:
            continue
    raise ValueError("Time must be in HH:MM or HH:MM:SS format")


def format_ghana_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a phone number to Hubtel's format (233XXXXXXXXX, no plus sign).

    Local numbers starting with 0 get the 233 country code in place of the 0.
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)
    if digits.startswith("233"):
        return digits
    if digits.startswith("0"):
        return f"233{digits[1:]}"
    return f"233{digits}"


def format_international_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a phone number to E.164 for Twilio.

    Numbers without a country code are assumed to be Ghanaian.
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)
    if digits.startswith("233"):
        return f"+{digits}"
    if digits.startswith("0"):
        return f"+233{digits[1:]}"
    if len(digits) <= 10:
        return f"+233{digits}"
    return f"+{digits}"


def format_display_date(value: date) -> str:
    """e.g. Tuesday, March 10, 2026"""
    return f"{value.strftime('%A')}, {value.strftime('%B')} {value.day}, {value.year}"


def format_display_time(value: time) -> str:
    """e.g. 2:00 PM"""
    hour12 = value.hour % 12 or 12
    ampm = "PM" if value.hour >= 12 else "AM"
    return f"{hour12}:{value.minute:02d} {ampm}"
