from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional

from ..common.time_ranges import format_hhmm, time_to_minutes


@dataclass(frozen=True)
class Shift:
    """Named daily time window of a branch.

    ``end_time`` earlier than ``start_time`` denotes an overnight shift.
    """

    shift_id: int
    shift_name: str
    start_time: time
    end_time: time
    branch_id: int
    max_employees: Optional[int] = None
    description: Optional[str] = None

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    @property
    def is_overnight(self) -> bool:
        return self.end_minutes < self.start_minutes

    @property
    def time_label(self) -> str:
        return f"{format_hhmm(self.start_time)} - {format_hhmm(self.end_time)}"
