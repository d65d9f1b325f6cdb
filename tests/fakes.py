"""In-memory repositories and a frozen clock for service and endpoint tests."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional

from shiftwork.attendance.model import AttendanceFilter, AttendanceRecord, AttendanceRow, GeoPoint
from shiftwork.branches.model import Branch, Geofence
from shiftwork.common.clock import DayBounds, LocalClock, month_date_range
from shiftwork.container import Container, Repositories, wire
from shiftwork.core.enums import (
    AttendanceStatus,
    PayrollStatus,
    RegistrationStatus,
    Role,
    SortOrder,
    ViolationStatus,
)
from shiftwork.core.exceptions import DuplicateRecordError, RecordInUseError
from shiftwork.core.pagination import PageRequest
from shiftwork.employees.model import Employee
from shiftwork.payroll.model import Payroll, PayrollFigures, PayrollFilter
from shiftwork.registrations.model import ApprovalOutcome, RegistrationFilter, RegistrationRow, ShiftRegistration
from shiftwork.shifts.model import Shift
from shiftwork.violations.model import Violation, ViolationFilter

HANOI_CENTER = (21.0285, 105.8048)


def _page(items: list, page: PageRequest) -> list:
    return items[page.offset : page.offset + page.limit]


def _sorted(items: list, key, order: SortOrder) -> list:
    return sorted(items, key=key, reverse=order == SortOrder.DESC)


class MutableNow:
    """Callable clock source tests can move around."""

    def __init__(self, value: datetime):
        self.value = value

    def __call__(self) -> datetime:
        return self.value

    def set_local(self, value: datetime, utc_offset_minutes: int = 420) -> None:
        self.value = (value - timedelta(minutes=utc_offset_minutes)).replace(tzinfo=timezone.utc)


@dataclass
class InMemoryBranches:
    branches: dict[int, Branch] = field(default_factory=dict)

    def get_by_id(self, branch_id: int) -> Optional[Branch]:
        return self.branches.get(int(branch_id))


@dataclass
class InMemoryEmployees:
    employees: dict[int, Employee] = field(default_factory=dict)

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        return self.employees.get(int(employee_id))

    def list_by_branch(self, branch_id: int, *, role: Optional[Role] = None):
        return [
            e
            for e in self.employees.values()
            if e.branch_id == branch_id and (role is None or e.role == role)
        ]


@dataclass
class InMemoryShifts:
    shifts: dict[int, Shift] = field(default_factory=dict)

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        return self.shifts.get(int(shift_id))


class InMemoryRegistrations:
    def __init__(self, employees: InMemoryEmployees, shifts: InMemoryShifts):
        self._employees = employees
        self._shifts = shifts
        self.items: dict[int, ShiftRegistration] = {}
        self.in_use: set[int] = set()
        self._next_id = 1

    def add(self, *, employee_id: int, shift_id: int, work_date: date, status=RegistrationStatus.PENDING) -> int:
        rid = self.create(employee_id=employee_id, shift_id=shift_id, work_date=work_date)
        self.items[rid] = replace(self.items[rid], status=status)
        return rid

    def _row(self, reg: ShiftRegistration) -> RegistrationRow:
        emp = self._employees.get_by_id(reg.employee_id)
        shift = self._shifts.get_by_id(reg.shift_id)
        return RegistrationRow(
            registration=reg,
            employee_name=emp.full_name,
            employee_branch_id=emp.branch_id,
            shift_name=shift.shift_name,
            start_time=shift.start_time,
            end_time=shift.end_time,
            shift_branch_id=shift.branch_id,
        )

    def get_by_id(self, registration_id: int) -> Optional[ShiftRegistration]:
        return self.items.get(int(registration_id))

    def get_row(self, registration_id: int) -> Optional[RegistrationRow]:
        reg = self.get_by_id(registration_id)
        return self._row(reg) if reg else None

    def find(self, *, employee_id: int, shift_id: int, work_date: date) -> Optional[ShiftRegistration]:
        for reg in self.items.values():
            if (reg.employee_id, reg.shift_id, reg.work_date) == (employee_id, shift_id, work_date):
                return reg
        return None

    def list_active_for_employee(self, employee_id: int, work_date: date):
        active = {RegistrationStatus.PENDING, RegistrationStatus.APPROVED}
        return [
            self._row(r)
            for r in self.items.values()
            if r.employee_id == employee_id and r.work_date == work_date and r.status in active
        ]

    def count_approved(self, shift_id: int, work_date: date) -> int:
        return sum(
            1
            for r in self.items.values()
            if r.shift_id == shift_id and r.work_date == work_date and r.status == RegistrationStatus.APPROVED
        )

    def create(self, *, employee_id: int, shift_id: int, work_date: date, note: Optional[str] = None) -> int:
        if self.find(employee_id=employee_id, shift_id=shift_id, work_date=work_date):
            raise DuplicateRecordError("uq_registration_employee_shift_date")
        rid = self._next_id
        self._next_id += 1
        now = datetime.now(timezone.utc)
        self.items[rid] = ShiftRegistration(
            registration_id=rid,
            employee_id=employee_id,
            shift_id=shift_id,
            work_date=work_date,
            status=RegistrationStatus.PENDING,
            note=note,
            created_at=now,
            updated_at=now,
        )
        return rid

    def approve_within_capacity(self, registration_id: int, *, approver_id: int, note: Optional[str] = None):
        reg = self.get_by_id(registration_id)
        if not reg:
            return ApprovalOutcome.NOT_FOUND
        if reg.status != RegistrationStatus.PENDING:
            return ApprovalOutcome.NOT_PENDING
        shift = self._shifts.get_by_id(reg.shift_id)
        if shift.max_employees and self.count_approved(reg.shift_id, reg.work_date) >= shift.max_employees:
            return ApprovalOutcome.CAPACITY_REACHED
        self.items[reg.registration_id] = replace(
            reg,
            status=RegistrationStatus.APPROVED,
            approved_by=approver_id,
            note=note or reg.note,
        )
        return ApprovalOutcome.APPROVED

    def reject(self, registration_id: int, *, approver_id: int, note: Optional[str] = None) -> bool:
        reg = self.get_by_id(registration_id)
        if not reg or reg.status != RegistrationStatus.PENDING:
            return False
        self.items[reg.registration_id] = replace(
            reg,
            status=RegistrationStatus.REJECTED,
            approved_by=approver_id,
            note=note or reg.note,
        )
        return True

    def delete(self, registration_id: int) -> bool:
        if int(registration_id) in self.in_use:
            raise RecordInUseError("fk_attendance_registration")
        return self.items.pop(int(registration_id), None) is not None

    def search(self, flt: RegistrationFilter, page: PageRequest):
        rows = [self._row(r) for r in self.items.values()]
        if flt.employee_id is not None:
            rows = [r for r in rows if r.registration.employee_id == flt.employee_id]
        if flt.branch_id is not None:
            rows = [r for r in rows if r.employee_branch_id == flt.branch_id]
        if flt.shift_id is not None:
            rows = [r for r in rows if r.registration.shift_id == flt.shift_id]
        if flt.status is not None:
            rows = [r for r in rows if r.registration.status == flt.status]
        if flt.work_date is not None:
            rows = [r for r in rows if r.registration.work_date == flt.work_date]
        rows = _sorted(rows, lambda r: (r.registration.work_date, r.registration.registration_id), page.order)
        return _page(rows, page), len(rows)


class InMemoryAttendance:
    def __init__(self, employees: InMemoryEmployees, shifts: InMemoryShifts):
        self._employees = employees
        self._shifts = shifts
        self.items: dict[int, AttendanceRecord] = {}
        self._next_id = 1

    def add(self, record: AttendanceRecord) -> int:
        aid = self._next_id
        self._next_id += 1
        self.items[aid] = replace(record, attendance_id=aid)
        return aid

    def _row(self, rec: AttendanceRecord) -> AttendanceRow:
        emp = self._employees.get_by_id(rec.employee_id)
        shift = self._shifts.get_by_id(rec.shift_id)
        return AttendanceRow(
            record=rec,
            employee_name=emp.full_name,
            employee_branch_id=emp.branch_id,
            shift_name=shift.shift_name,
            start_time=shift.start_time,
            end_time=shift.end_time,
        )

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self.items.get(int(attendance_id))

    def get_row(self, attendance_id: int) -> Optional[AttendanceRow]:
        rec = self.get_by_id(attendance_id)
        return self._row(rec) if rec else None

    def find_for_registration(self, registration_id: int, day: DayBounds) -> Optional[AttendanceRecord]:
        for rec in self.items.values():
            if rec.registration_id == registration_id and rec.work_date == day.local_date:
                return rec
        return None

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
        for rec in self.items.values():
            if (rec.registration_id, rec.work_date) == (registration_id, work_date):
                raise DuplicateRecordError("uq_attendance_registration_date")
        return self.add(
            AttendanceRecord(
                attendance_id=0,
                employee_id=employee_id,
                shift_id=shift_id,
                registration_id=registration_id,
                work_date=work_date,
                status=AttendanceStatus.CHECKED_IN,
                check_in_time=check_in_time,
                check_in_location=location,
                notes=notes,
            )
        )

    def record_checkout(
        self,
        attendance_id: int,
        *,
        check_out_time: datetime,
        location: GeoPoint,
        work_hours: float,
        notes: Optional[str] = None,
    ) -> bool:
        rec = self.get_by_id(attendance_id)
        if not rec or rec.check_in_time is None or rec.check_out_time is not None:
            return False
        self.items[rec.attendance_id] = replace(
            rec,
            check_out_time=check_out_time,
            check_out_location=location,
            status=AttendanceStatus.CHECKED_OUT,
            work_hours=work_hours,
            notes=notes or rec.notes,
        )
        return True

    def _filter(self, flt: AttendanceFilter) -> list[AttendanceRow]:
        rows = [self._row(r) for r in self.items.values()]
        if flt.employee_id is not None:
            rows = [r for r in rows if r.record.employee_id == flt.employee_id]
        if flt.branch_id is not None:
            rows = [r for r in rows if r.employee_branch_id == flt.branch_id]
        if flt.shift_id is not None:
            rows = [r for r in rows if r.record.shift_id == flt.shift_id]
        if flt.status is not None:
            rows = [r for r in rows if r.record.status == flt.status]
        if flt.start_date is not None:
            rows = [r for r in rows if r.record.work_date >= flt.start_date]
        if flt.end_date is not None:
            rows = [r for r in rows if r.record.work_date <= flt.end_date]
        return rows

    def search(self, flt: AttendanceFilter, page: PageRequest):
        rows = _sorted(self._filter(flt), lambda r: (r.record.work_date, r.record.attendance_id), page.order)
        return _page(rows, page), len(rows)

    def list_for_period(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[int] = None,
        branch_id: Optional[int] = None,
        statuses: Optional[Iterable[AttendanceStatus]] = None,
    ):
        rows = self._filter(
            AttendanceFilter(employee_id=employee_id, branch_id=branch_id, start_date=start_date, end_date=end_date)
        )
        wanted = set(statuses or [])
        if wanted:
            rows = [r for r in rows if r.record.status in wanted]
        return sorted(rows, key=lambda r: (r.record.work_date, r.record.attendance_id))


class InMemoryPayrolls:
    def __init__(self):
        self.items: dict[int, Payroll] = {}
        self._next_id = 1

    def get_by_id(self, payroll_id: int) -> Optional[Payroll]:
        return self.items.get(int(payroll_id))

    def find_for_period(self, *, employee_id: int, month: int, year: int) -> Optional[Payroll]:
        for p in self.items.values():
            if (p.employee_id, p.month, p.year) == (employee_id, month, year):
                return p
        return None

    def create(self, *, employee_id: int, branch_id: int, month: int, year: int, figures: PayrollFigures, notes=None):
        if self.find_for_period(employee_id=employee_id, month=month, year=year):
            raise DuplicateRecordError("uq_payroll_employee_period")
        pid = self._next_id
        self._next_id += 1
        self.items[pid] = Payroll(
            payroll_id=pid,
            employee_id=employee_id,
            branch_id=branch_id,
            month=month,
            year=year,
            figures=figures,
            notes=notes,
        )
        return pid

    def set_status(self, payroll_id: int, status: PayrollStatus) -> None:
        self.items[payroll_id] = replace(self.items[payroll_id], status=status)

    def update_figures(self, payroll_id: int, *, figures: PayrollFigures, expected_revision: int) -> bool:
        p = self.get_by_id(payroll_id)
        if not p or p.status != PayrollStatus.DRAFT or p.revision != expected_revision:
            return False
        self.items[p.payroll_id] = replace(p, figures=figures, revision=p.revision + 1)
        return True

    def update_status(self, payroll_id: int, *, status, notes=None, paid_at=None, paid_by=None) -> bool:
        p = self.get_by_id(payroll_id)
        if not p or p.status == PayrollStatus.PAID:
            return False
        self.items[p.payroll_id] = replace(
            p,
            status=status,
            notes=notes or p.notes,
            paid_at=p.paid_at or paid_at,
            paid_by=p.paid_by or paid_by,
        )
        return True

    def mark_paid(self, payroll_id: int, *, paid_at: datetime, paid_by: int) -> bool:
        p = self.get_by_id(payroll_id)
        if not p or p.status != PayrollStatus.APPROVED or p.paid_at is not None:
            return False
        self.items[p.payroll_id] = replace(p, status=PayrollStatus.PAID, paid_at=paid_at, paid_by=paid_by)
        return True

    def delete_draft(self, payroll_id: int) -> bool:
        p = self.get_by_id(payroll_id)
        if not p or p.status != PayrollStatus.DRAFT:
            return False
        del self.items[p.payroll_id]
        return True

    def search(self, flt: PayrollFilter, page: PageRequest):
        items = list(self.items.values())
        if flt.employee_id is not None:
            items = [p for p in items if p.employee_id == flt.employee_id]
        if flt.branch_id is not None:
            items = [p for p in items if p.branch_id == flt.branch_id]
        if flt.month is not None:
            items = [p for p in items if p.month == flt.month]
        if flt.year is not None:
            items = [p for p in items if p.year == flt.year]
        if flt.status is not None:
            items = [p for p in items if p.status == flt.status]
        items = _sorted(items, lambda p: (p.year, p.month, p.payroll_id), page.order)
        return _page(items, page), len(items)


class InMemoryViolations:
    def __init__(self):
        self.items: dict[int, Violation] = {}
        self._next_id = 1

    def get_by_id(self, violation_id: int) -> Optional[Violation]:
        return self.items.get(int(violation_id))

    def create(
        self,
        *,
        employee_id: int,
        branch_id: int,
        title: str,
        description: str,
        violation_date: date,
        penalty_amount: float,
        created_by: int,
        shift_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> int:
        vid = self._next_id
        self._next_id += 1
        self.items[vid] = Violation(
            violation_id=vid,
            employee_id=employee_id,
            branch_id=branch_id,
            title=title,
            description=description,
            violation_date=violation_date,
            penalty_amount=float(penalty_amount),
            status=ViolationStatus.PENDING,
            created_by=created_by,
            shift_id=shift_id,
            notes=notes,
        )
        return vid

    def acknowledge(self, violation_id: int, *, acknowledged_at: datetime) -> bool:
        v = self.get_by_id(violation_id)
        if not v or v.status != ViolationStatus.PENDING:
            return False
        self.items[v.violation_id] = replace(v, status=ViolationStatus.ACKNOWLEDGED, acknowledged_at=acknowledged_at)
        return True

    def search(self, flt: ViolationFilter, page: PageRequest):
        items = list(self.items.values())
        if flt.employee_id is not None:
            items = [v for v in items if v.employee_id == flt.employee_id]
        if flt.branch_id is not None:
            items = [v for v in items if v.branch_id == flt.branch_id]
        if flt.status is not None:
            items = [v for v in items if v.status == flt.status]
        if flt.start_date is not None:
            items = [v for v in items if v.violation_date >= flt.start_date]
        if flt.end_date is not None:
            items = [v for v in items if v.violation_date <= flt.end_date]
        items = _sorted(items, lambda v: (v.violation_date, v.violation_id), page.order)
        return _page(items, page), len(items)

    def sum_penalties_for_period(self, employee_id: int, month: int, year: int) -> float:
        start, end = month_date_range(month, year)
        return sum(
            v.penalty_amount
            for v in self.items.values()
            if v.employee_id == employee_id and start <= v.violation_date <= end
        )


class InMemoryNotifications:
    def __init__(self, *, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail

    def create(self, *, employee_id: int, title: str, message: str) -> int:
        if self.fail:
            raise RuntimeError("notification store down")
        self.sent.append({"employee_id": employee_id, "title": title, "message": message})
        return len(self.sent)


def seed_branches() -> InMemoryBranches:
    return InMemoryBranches(
        {
            1: Branch(1, "Hanoi HQ", "1 Trang Tien", Geofence(*HANOI_CENTER, radius_meters=500)),
            2: Branch(2, "Da Nang", "2 Bach Dang", None),
        }
    )


def seed_employees() -> InMemoryEmployees:
    return InMemoryEmployees(
        {
            1: Employee(1, "Admin", "admin@example.com", Role.ADMIN, None),
            2: Employee(2, "Manager One", "m1@example.com", Role.MANAGER, 1),
            3: Employee(3, "An Nguyen", "an@example.com", Role.EMPLOYEE, 1),
            4: Employee(4, "Binh Tran", "binh@example.com", Role.EMPLOYEE, 1),
            5: Employee(5, "Chi Le", "chi@example.com", Role.EMPLOYEE, 2),
            6: Employee(6, "Manager Two", "m2@example.com", Role.MANAGER, 2),
        }
    )


def seed_shifts() -> InMemoryShifts:
    return InMemoryShifts(
        {
            1: Shift(1, "Morning", time(9, 0), time(17, 0), 1),
            2: Shift(2, "Afternoon", time(16, 0), time(20, 0), 1),
            3: Shift(3, "Evening", time(17, 0), time(22, 0), 1),
            4: Shift(4, "Night", time(22, 0), time(6, 0), 1),
            5: Shift(5, "Capped", time(6, 0), time(8, 0), 1, max_employees=1),
            6: Shift(6, "Da Nang Day", time(9, 0), time(17, 0), 2),
        }
    )


@dataclass
class World:
    container: Container
    now: MutableNow
    branches: InMemoryBranches
    employees: InMemoryEmployees
    shifts: InMemoryShifts
    registrations: InMemoryRegistrations
    attendance: InMemoryAttendance
    payrolls: InMemoryPayrolls
    violations: InMemoryViolations
    notifications: InMemoryNotifications


def build_world(local_now: datetime = datetime(2025, 10, 15, 8, 0), *, settings=None, notifications=None) -> World:
    """Seeded in-memory system with the clock at ``local_now`` (UTC+7)."""

    now = MutableNow(datetime.now(timezone.utc))
    now.set_local(local_now)

    branches = seed_branches()
    employees = seed_employees()
    shifts = seed_shifts()
    registrations = InMemoryRegistrations(employees, shifts)
    attendance = InMemoryAttendance(employees, shifts)
    payrolls = InMemoryPayrolls()
    violations = InMemoryViolations()
    notifications = notifications or InMemoryNotifications()

    repos = Repositories(
        branches=branches,
        employees=employees,
        shifts=shifts,
        registrations=registrations,
        attendance=attendance,
        payrolls=payrolls,
        violations=violations,
        notifications=notifications,
    )
    container = wire(repos, settings=settings, clock=LocalClock(420, now_func=now))
    return World(
        container=container,
        now=now,
        branches=branches,
        employees=employees,
        shifts=shifts,
        registrations=registrations,
        attendance=attendance,
        payrolls=payrolls,
        violations=violations,
        notifications=notifications,
    )
