from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..common.clock import DayBounds
from ..core.enums import AttendanceStatus
from ..core.pagination import PageRequest
from .model import AttendanceFilter, AttendanceRecord, AttendanceRow, GeoPoint


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_row(self, attendance_id: int) -> Optional[AttendanceRow]:
        raise NotImplementedError

    def find_for_registration(self, registration_id: int, day: DayBounds) -> Optional[AttendanceRecord]:
        """Attendance already recorded for a registration on the given local day."""

        raise NotImplementedError

    def create_checkin(
        self,
        *,
        employee_id: int,
        shift_id: int,
        registration_id: int,
        work_date: date,
        check_in_time: datetime,
        location: GeoPoint,
        notes: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def record_checkout(
        self,
        attendance_id: int,
        *,
        check_out_time: datetime,
        location: GeoPoint,
        work_hours: float,
        notes: Optional[str] = None,
    ) -> bool:
        """Close an open attendance. False when it was already checked out."""

        raise NotImplementedError

    def search(self, flt: AttendanceFilter, page: PageRequest) -> tuple[Sequence[AttendanceRow], int]:
        raise NotImplementedError

    def list_for_period(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[int] = None,
        branch_id: Optional[int] = None,
        statuses: Optional[Iterable[AttendanceStatus]] = None,
    ) -> Sequence[AttendanceRow]:
        """Rows whose work date falls in ``[start_date, end_date]``, oldest first."""

        raise NotImplementedError
