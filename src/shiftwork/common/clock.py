from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

from ..core.constants import DEFAULT_UTC_OFFSET_MINUTES


@dataclass(frozen=True)
class DayBounds:
    """Half-open UTC interval ``[day_start, day_end)`` covering one local day."""

    local_date: date
    day_start: datetime
    day_end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.day_start <= as_utc(instant) < self.day_end


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are taken to be UTC already."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def fixed_offset(utc_offset_minutes: int) -> timezone:
    return timezone(timedelta(minutes=int(utc_offset_minutes)))


def local_day_bounds(instant: datetime, utc_offset_minutes: int) -> DayBounds:
    """Start/end of the local day containing ``instant``, expressed in UTC."""

    tz = fixed_offset(utc_offset_minutes)
    local = as_utc(instant).astimezone(tz)
    local_midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    day_start = local_midnight.astimezone(timezone.utc)
    return DayBounds(
        local_date=local.date(),
        day_start=day_start,
        day_end=day_start + timedelta(days=1),
    )


def month_date_range(month: int, year: int) -> tuple[date, date]:
    """First and last calendar day of a month."""

    last_day = calendar.monthrange(int(year), int(month))[1]
    return date(int(year), int(month), 1), date(int(year), int(month), last_day)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LocalClock:
    """Clock bound to the organisation-wide fixed UTC offset.

    Note: ``now_func`` is injectable so tests can freeze time.
    """

    def __init__(
        self,
        utc_offset_minutes: int = DEFAULT_UTC_OFFSET_MINUTES,
        *,
        now_func: Optional[Callable[[], datetime]] = None,
    ):
        self._offset_minutes = int(utc_offset_minutes)
        self._tz = fixed_offset(self._offset_minutes)
        self._now_func = now_func or utc_now

    @property
    def utc_offset_minutes(self) -> int:
        return self._offset_minutes

    def now(self) -> datetime:
        return as_utc(self._now_func())

    def to_local(self, instant: datetime) -> datetime:
        return as_utc(instant).astimezone(self._tz)

    def day_bounds(self, instant: Optional[datetime] = None) -> DayBounds:
        return local_day_bounds(instant or self.now(), self._offset_minutes)

    def local_date(self, instant: Optional[datetime] = None) -> date:
        return self.to_local(instant or self.now()).date()

    def minutes_of_day(self, instant: datetime) -> int:
        local = self.to_local(instant)
        return local.hour * 60 + local.minute
