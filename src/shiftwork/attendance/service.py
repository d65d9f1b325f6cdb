from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..branches.model import Branch
from ..branches.repository import BranchRepository
from ..common.clock import LocalClock, as_utc, month_date_range
from ..common.geo import within_radius
from ..common.time_ranges import checkin_window, format_minutes, minute_in_window
from ..common.transactions import NoTransaction, TransactionManager
from ..common.validators import optional_text, require_coordinates, require_month, require_year
from ..core.constants import DEFAULT_CHECKIN_EARLY_MINUTES
from ..core.context import RequestingUser
from ..core.enums import AttendanceStatus, RegistrationStatus
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DuplicateRecordError,
    NotFoundError,
    ValidationError,
)
from ..core.pagination import Page, PageRequest
from ..employees.repository import EmployeeRepository
from ..registrations.repository import RegistrationRepository
from ..shifts.model import Shift
from ..shifts.repository import ShiftRepository
from .model import (
    ATTENDANCE_SORT_FIELDS,
    AttendanceFilter,
    AttendanceRecord,
    AttendanceRow,
    GeoPoint,
    MonthlyReport,
    compute_work_hours,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

ALREADY_CHECKED_IN = "You have already checked in for this shift today"


class AttendanceService:
    """GPS and time-window validated check-in/check-out against approved registrations."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        registrations: RegistrationRepository,
        shifts: ShiftRepository,
        branches: BranchRepository,
        employees: EmployeeRepository,
        *,
        clock: Optional[LocalClock] = None,
        tx: Optional[TransactionManager] = None,
        early_minutes: int = DEFAULT_CHECKIN_EARLY_MINUTES,
    ):
        self._attendance = attendance
        self._registrations = registrations
        self._shifts = shifts
        self._branches = branches
        self._employees = employees
        self._clock = clock or LocalClock()
        self._tx = tx or NoTransaction()
        self._early_minutes = int(early_minutes)

    def check_in(
        self,
        requester: RequestingUser,
        *,
        registration_id: int,
        latitude: float,
        longitude: float,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        lat, lon = require_coordinates(latitude, longitude)
        notes = optional_text(notes, "Notes")
        now = as_utc(now) if now else self._clock.now()

        registration = self._registrations.get_by_id(registration_id)
        if not registration:
            raise NotFoundError("Shift registration not found")
        if registration.status != RegistrationStatus.APPROVED:
            raise ValidationError("Only approved shift registrations can be used for check-in")
        if registration.employee_id != requester.user_id:
            raise AuthorizationError("You can only check-in for your own shift registrations")

        today = self._clock.day_bounds(now)
        if registration.work_date != today.local_date:
            raise ValidationError(
                f"This shift registration is for {registration.work_date.isoformat()}, "
                f"not today ({today.local_date.isoformat()})"
            )

        with self._tx.transaction():
            if self._attendance.find_for_registration(registration.registration_id, today):
                raise ConflictError(ALREADY_CHECKED_IN)

            shift = self._shifts.get_by_id(registration.shift_id)
            if not shift:
                raise NotFoundError("Shift not found")
            branch = self._branches.get_by_id(shift.branch_id)
            if not branch:
                raise NotFoundError("Branch not found")

            self._check_geofence(branch, lat, lon, action="check-in")
            self._check_window(shift, now)

            try:
                attendance_id = self._attendance.create_checkin(
                    employee_id=registration.employee_id,
                    shift_id=shift.shift_id,
                    registration_id=registration.registration_id,
                    work_date=today.local_date,
                    check_in_time=now,
                    location=GeoPoint(latitude=lat, longitude=lon),
                    notes=notes,
                )
            except DuplicateRecordError:
                raise ConflictError(ALREADY_CHECKED_IN) from None

        logger.info(
            "Check-in %s: employee=%s registration=%s at %s",
            attendance_id,
            registration.employee_id,
            registration.registration_id,
            now.isoformat(),
        )
        return self._attendance.get_by_id(attendance_id)

    def check_out(
        self,
        requester: RequestingUser,
        *,
        attendance_id: int,
        latitude: float,
        longitude: float,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        lat, lon = require_coordinates(latitude, longitude)
        notes = optional_text(notes, "Notes")
        now = as_utc(now) if now else self._clock.now()

        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        if record.employee_id != requester.user_id:
            raise AuthorizationError("You can only check-out your own attendance")
        if record.check_in_time is None:
            raise ValidationError("You must check-in before checking out")
        if record.check_out_time is not None:
            raise ValidationError("You have already checked out")

        shift = self._shifts.get_by_id(record.shift_id)
        if shift:
            branch = self._branches.get_by_id(shift.branch_id)
            if branch:
                self._check_geofence(branch, lat, lon, action="check-out")

        if now <= as_utc(record.check_in_time):
            raise ValidationError("Check-out time must be after check-in time")

        work_hours = compute_work_hours(record.check_in_time, now)
        updated = self._attendance.record_checkout(
            record.attendance_id,
            check_out_time=now,
            location=GeoPoint(latitude=lat, longitude=lon),
            work_hours=work_hours,
            notes=notes,
        )
        if not updated:
            raise ValidationError("You have already checked out")

        logger.info("Check-out %s: employee=%s work_hours=%.2f", record.attendance_id, record.employee_id, work_hours)
        return self._attendance.get_by_id(record.attendance_id)

    def get_attendances(
        self,
        requester: RequestingUser,
        *,
        flt: Optional[AttendanceFilter] = None,
        page: Optional[PageRequest] = None,
    ) -> Page[AttendanceRow]:
        flt = flt or AttendanceFilter()
        page = page or PageRequest()
        if page.sort_by not in ATTENDANCE_SORT_FIELDS:
            raise ValidationError(f"Invalid sort field: {page.sort_by}")
        if flt.start_date and flt.end_date and flt.start_date > flt.end_date:
            raise ValidationError("startDate must not be after endDate")

        if requester.is_employee:
            flt = replace(flt, employee_id=requester.user_id, branch_id=None)
        elif requester.is_manager:
            flt = replace(flt, branch_id=requester.require_branch())

        rows, total = self._attendance.search(flt, page)
        return Page.build(rows, request=page, total=total)

    def get_attendance_by_id(self, attendance_id: int, requester: RequestingUser) -> AttendanceRow:
        row = self._attendance.get_row(attendance_id)
        if not row:
            raise NotFoundError("Attendance not found")
        if requester.is_employee and row.record.employee_id != requester.user_id:
            raise AuthorizationError("You can only view your own attendance")
        if requester.is_manager and row.employee_branch_id != requester.require_branch():
            raise AuthorizationError("You can only view attendance in your branch")
        return row

    def get_monthly_report(
        self,
        requester: RequestingUser,
        *,
        month: int,
        year: int,
        employee_id: Optional[int] = None,
    ) -> MonthlyReport:
        month = require_month(month)
        year = require_year(year)
        start, end = month_date_range(month, year)

        branch_id: Optional[int] = None
        if requester.is_employee:
            employee_id = requester.user_id
        elif employee_id is not None:
            if requester.is_manager:
                employee = self._employees.get_by_id(employee_id)
                if not employee or employee.branch_id != requester.require_branch():
                    raise AuthorizationError("You can only view reports for employees in your branch")
        elif requester.is_manager:
            branch_id = requester.require_branch()

        rows = self._attendance.list_for_period(
            start_date=start,
            end_date=end,
            employee_id=employee_id,
            branch_id=branch_id,
        )

        worked = {AttendanceStatus.CHECKED_IN, AttendanceStatus.CHECKED_OUT}
        total_days = len(rows)
        checked_in_days = sum(1 for r in rows if r.record.status in worked)
        checked_out_days = sum(1 for r in rows if r.record.status == AttendanceStatus.CHECKED_OUT)
        total_hours = sum(r.record.work_hours or 0 for r in rows)

        return MonthlyReport(
            month=month,
            year=year,
            total_days=total_days,
            checked_in_days=checked_in_days,
            checked_out_days=checked_out_days,
            absent_days=total_days - checked_in_days,
            total_work_hours=round(total_hours, 2),
            attendances=list(rows),
        )

    def _check_geofence(self, branch: Branch, latitude: float, longitude: float, *, action: str) -> None:
        fence = branch.geofence
        if fence is None:
            return
        inside, distance_km = within_radius(latitude, longitude, fence.latitude, fence.longitude, fence.radius_meters)
        if not inside:
            raise ValidationError(
                f"You must be within {fence.radius_meters}m of the branch to {action}. "
                f"Current distance: {round(distance_km * 1000)}m"
            )

    def _check_window(self, shift: Shift, now: datetime) -> None:
        start, end = checkin_window(shift.start_minutes, shift.end_minutes, self._early_minutes)
        current = self._clock.minutes_of_day(now)
        if not minute_in_window(current, start, end):
            raise ValidationError(
                f"Check-in is only allowed between {format_minutes(start)} and {format_minutes(end)} "
                f"for shift {shift.shift_name} ({shift.time_label})"
            )
