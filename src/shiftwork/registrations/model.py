from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Optional

from ..common.time_ranges import format_hhmm, time_to_minutes
from ..core.enums import RegistrationStatus

# public sort key -> column
REGISTRATION_SORT_FIELDS = {
    "date": "r.work_date",
    "status": "r.status",
    "createdAt": "r.created_at",
    "updatedAt": "r.updated_at",
}


@dataclass(frozen=True)
class ShiftRegistration:
    registration_id: int
    employee_id: int
    shift_id: int
    work_date: date
    status: RegistrationStatus
    note: Optional[str] = None
    approved_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RegistrationStatus.PENDING


@dataclass(frozen=True)
class RegistrationRow:
    """Registration joined with its employee and shift for display and rules."""

    registration: ShiftRegistration
    employee_name: str
    employee_branch_id: Optional[int]
    shift_name: str
    start_time: time
    end_time: time
    shift_branch_id: int

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    @property
    def time_label(self) -> str:
        return f"{format_hhmm(self.start_time)} - {format_hhmm(self.end_time)}"


@dataclass(frozen=True)
class RegistrationFilter:
    employee_id: Optional[int] = None
    branch_id: Optional[int] = None
    shift_id: Optional[int] = None
    status: Optional[RegistrationStatus] = None
    work_date: Optional[date] = None


class ApprovalOutcome(Enum):
    APPROVED = "approved"
    NOT_FOUND = "not_found"
    NOT_PENDING = "not_pending"
    CAPACITY_REACHED = "capacity_reached"
