from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ...attendance.model import AttendanceRow
from ...common.clock import LocalClock
from ...core.constants import DEFAULT_LATE_GRACE_MINUTES, MINUTES_PER_DAY


class LatenessPolicy(ABC):
    """Turns a month of attendance into a lateness deduction."""

    @abstractmethod
    def deduction(self, rows: Sequence[AttendanceRow]) -> float:
        raise NotImplementedError


class NoLatenessPenalty(LatenessPolicy):
    def deduction(self, rows: Sequence[AttendanceRow]) -> float:
        return 0.0


class FlatLatenessPenalty(LatenessPolicy):
    """Fixed amount per check-in later than shift start plus ``grace_minutes``.

    Lateness is measured on local time-of-day and wraps past midnight, so an
    early check-in for an overnight shift is not counted.
    """

    def __init__(self, amount: float, *, clock: LocalClock, grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES):
        self._amount = float(amount)
        self._clock = clock
        self._grace_minutes = int(grace_minutes)

    def is_late(self, row: AttendanceRow) -> bool:
        check_in = row.record.check_in_time
        if check_in is None:
            return False
        start = row.shift_start_minutes
        duration = (row.shift_end_minutes - start) % MINUTES_PER_DAY or MINUTES_PER_DAY
        delay = (self._clock.minutes_of_day(check_in) - start) % MINUTES_PER_DAY
        return self._grace_minutes < delay <= duration

    def deduction(self, rows: Sequence[AttendanceRow]) -> float:
        return round(self._amount * sum(1 for r in rows if self.is_late(r)), 2)
