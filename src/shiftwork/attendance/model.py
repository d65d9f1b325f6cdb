from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional, Sequence

from ..common.clock import as_utc
from ..common.time_ranges import format_hhmm, time_to_minutes
from ..core.enums import AttendanceStatus

ATTENDANCE_SORT_FIELDS = {
    "date": "a.work_date",
    "checkInTime": "a.check_in_time",
    "checkOutTime": "a.check_out_time",
    "workHours": "a.work_hours",
    "createdAt": "a.created_at",
}


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class AttendanceRecord:
    attendance_id: int
    employee_id: int
    shift_id: int
    registration_id: int
    work_date: date
    status: AttendanceStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    check_in_location: Optional[GeoPoint] = None
    check_out_location: Optional[GeoPoint] = None
    notes: Optional[str] = None
    work_hours: Optional[float] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceRow:
    """Attendance joined with employee and shift details."""

    record: AttendanceRecord
    employee_name: str
    employee_branch_id: Optional[int]
    shift_name: str
    start_time: time
    end_time: time

    @property
    def shift_start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def shift_end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    @property
    def shift_time_label(self) -> str:
        return f"{format_hhmm(self.start_time)} - {format_hhmm(self.end_time)}"


@dataclass(frozen=True)
class AttendanceFilter:
    employee_id: Optional[int] = None
    branch_id: Optional[int] = None
    shift_id: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class MonthlyReport:
    month: int
    year: int
    total_days: int
    checked_in_days: int
    checked_out_days: int
    absent_days: int
    total_work_hours: float
    attendances: Sequence[AttendanceRow] = field(default_factory=list)

    def summary(self) -> dict:
        return {
            "totalDays": self.total_days,
            "checkedInDays": self.checked_in_days,
            "checkedOutDays": self.checked_out_days,
            "absentDays": self.absent_days,
            "totalWorkHours": self.total_work_hours,
        }


def compute_work_hours(check_in_time: datetime, check_out_time: datetime) -> float:
    """Elapsed hours between check-in and check-out, rounded to 2 decimals."""

    seconds = (as_utc(check_out_time) - as_utc(check_in_time)).total_seconds()
    return round(seconds / 3600, 2)
