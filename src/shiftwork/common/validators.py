from __future__ import annotations

import math
from datetime import date, datetime
from typing import Optional

from ..core.constants import NOTE_MAX_LENGTH
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def optional_text(value: Optional[str], field_name: str, *, max_len: int = NOTE_MAX_LENGTH) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    if len(value) > max_len:
        raise ValidationError(f"{field_name} is too long (max {max_len} characters)")
    return value or None


def require_id(value, field_name: str) -> int:
    try:
        ident = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name}")
    if ident <= 0:
        raise ValidationError(f"Invalid {field_name}")
    return ident


def require_month(month) -> int:
    try:
        month = int(month)
    except (TypeError, ValueError):
        raise ValidationError("Month must be between 1 and 12")
    if month < 1 or month > 12:
        raise ValidationError("Month must be between 1 and 12")
    return month


def require_year(year) -> int:
    try:
        year = int(year)
    except (TypeError, ValueError):
        raise ValidationError("Year must be between 2020 and 2100")
    if year < 2020 or year > 2100:
        raise ValidationError("Year must be between 2020 and 2100")
    return year


def require_number(value, field_name: str, *, minimum: Optional[float] = None, maximum: Optional[float] = None) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field_name} must be a finite number")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field_name} must be at least {minimum:g}")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field_name} must be at most {maximum:g}")
    return number


def require_coordinates(latitude, longitude) -> tuple[float, float]:
    lat = require_number(latitude, "Latitude", minimum=-90, maximum=90)
    lon = require_number(longitude, "Longitude", minimum=-180, maximum=180)
    return lat, lon


def parse_iso_date(value: str) -> date:
    """Parse an ISO date (``YYYY-MM-DD`` or a full ISO timestamp) into a date."""

    raw = (value or "").strip()
    try:
        return datetime.strptime(raw[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid date format. Use ISO 8601 (e.g., 2025-10-15)")
