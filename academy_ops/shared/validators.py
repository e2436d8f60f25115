"""Shared validation utilities"""

import re
from typing import Optional

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a domestic phone number to its digits.

    Args:
        phone: Phone number string in various formats (010-1234-5678, +82 10 1234 5678)

    Returns:
        Digits only, with a +82 country prefix folded back to a leading 0

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    if digits.startswith("82") and len(digits) in (11, 12):
        digits = "0" + digits[2:]

    if len(digits) < 9 or len(digits) > 11:
        raise ValueError("Phone number must have 9 to 11 digits")

    return digits


def validate_slot_time(value: str) -> str:
    """
    Validate a slot time in 24h HH:MM format.

    Single-digit hours ("9:00") are zero-padded so times sort lexically.
    """
    if value is None:
        raise ValueError("Time is required")
    value = value.strip()
    if re.match(r"^\d:\d\d$", value):
        value = "0" + value
    if not _TIME_RE.match(value):
        raise ValueError("Time must be in HH:MM format")
    return value


def normalize_name(name: Optional[str]) -> str:
    """Collapse whitespace and case so the same child maps to one natural key"""
    return " ".join((name or "").split()).lower()


def student_natural_key(phone: str, name: str) -> str:
    """Stable natural key for an enrolled student: contact digits plus name"""
    digits = re.sub(r"\D", "", phone or "")
    return f"{digits}:{normalize_name(name)}"
