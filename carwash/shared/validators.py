"""Shared validation utilities"""

import re
import uuid
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

ID_PREFIXES = {
    "user": "usr",
    "vehicle": "veh",
    "service": "svc",
    "reservation": "res",
    "payment": "pay",
    "rating": "rat",
    "notification": "ntf",
    "proof": "prf",
    "message": "msg",
}


def new_id(kind: str) -> str:
    """Generate an opaque prefixed identifier, e.g. ``res_3f2a...``"""
    return f"{ID_PREFIXES[kind]}_{uuid.uuid4().hex}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

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
    """Strip formatting characters and require 7 to 15 digits (optional leading +)"""
    if not phone:
        return phone

    cleaned = re.sub(r"[\s\-().]", "", phone)
    if not re.fullmatch(r"\+?\d{7,15}", cleaned):
        raise ValueError("Invalid phone number")
    return cleaned


def normalize_plate(plate: str) -> str:
    plate = re.sub(r"\s+", "", plate or "").upper()
    if not plate:
        raise ValueError("Plate is required")
    return plate


def validate_latitude(value: Optional[float]) -> Optional[float]:
    if value is not None and not -90 <= value <= 90:
        raise ValueError("Latitude must be between -90 and 90")
    return value


def validate_longitude(value: Optional[float]) -> Optional[float]:
    if value is not None and not -180 <= value <= 180:
        raise ValueError("Longitude must be between -180 and 180")
    return value


def validate_schedule_time(value: str) -> str:
    if not value or not TIME_PATTERN.match(value):
        raise ValueError("scheduledTime must be HH:MM")
    return value
