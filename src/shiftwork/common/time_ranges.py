"""Time-of-day arithmetic on minutes since local midnight.

A range whose end is numerically before its start wraps past midnight and is
treated as ``[start, 1440) + [0, end)``.
"""

from __future__ import annotations

import re
from datetime import time

from ..core.constants import MINUTES_PER_DAY
from ..core.exceptions import ValidationError

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def time_string_to_minutes(value: str) -> int:
    m = _HHMM.match((value or "").strip())
    if not m:
        raise ValidationError(f"Invalid time {value!r}, expected HH:mm (24-hour)")
    return int(m.group(1)) * 60 + int(m.group(2))


def parse_hhmm(value: str) -> time:
    minutes = time_string_to_minutes(value)
    return time(hour=minutes // 60, minute=minutes % 60)


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def format_minutes(minutes: int) -> str:
    minutes = int(minutes) % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def range_segments(start: int, end: int) -> list[tuple[int, int]]:
    """Split a possibly wrapping range into non-wrapping half-open segments."""

    start %= MINUTES_PER_DAY
    end %= MINUTES_PER_DAY
    if start < end:
        return [(start, end)]
    if start == end:
        # same start and end: a full 24-hour range
        return [(0, MINUTES_PER_DAY)]
    segments = [(start, MINUTES_PER_DAY)]
    if end > 0:
        segments.append((0, end))
    return segments


def ranges_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    for s1, e1 in range_segments(a_start, a_end):
        for s2, e2 in range_segments(b_start, b_end):
            if s1 < e2 and s2 < e1:
                return True
    return False


def minute_in_window(minute: int, start: int, end: int) -> bool:
    """Closed-interval membership ``start <= minute <= end`` with wraparound."""

    minute %= MINUTES_PER_DAY
    start %= MINUTES_PER_DAY
    end %= MINUTES_PER_DAY
    if start <= end:
        return start <= minute <= end
    return minute >= start or minute <= end


def checkin_window(shift_start: int, shift_end: int, early_minutes: int) -> tuple[int, int]:
    """Allowed check-in window: ``early_minutes`` before start until shift end.

    A shift whose start equals its end runs all day, so check-in is open all day.
    """

    if shift_start % MINUTES_PER_DAY == shift_end % MINUTES_PER_DAY:
        return 0, MINUTES_PER_DAY - 1
    return (shift_start - int(early_minutes)) % MINUTES_PER_DAY, shift_end % MINUTES_PER_DAY
