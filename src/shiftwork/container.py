from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Any, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .branches.mysql_branch_repository import MySQLBranchRepository
from .branches.repository import BranchRepository
from .common.clock import LocalClock
from .common.transactions import TransactionManager
from .core import constants
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .notifications.dispatcher import NotificationDispatcher
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .payroll.calculator.lateness import FlatLatenessPenalty, LatenessPolicy, NoLatenessPenalty
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService
from .registrations.mysql_registration_repository import MySQLRegistrationRepository
from .registrations.repository import RegistrationRepository
from .registrations.service import RegistrationService
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import ShiftRepository
from .violations.mysql_violation_repository import MySQLViolationRepository
from .violations.repository import ViolationRepository
from .violations.service import ViolationService


@dataclass(frozen=True)
class Repositories:
    branches: BranchRepository
    employees: EmployeeRepository
    shifts: ShiftRepository
    registrations: RegistrationRepository
    attendance: AttendanceRepository
    payrolls: PayrollRepository
    violations: ViolationRepository
    notifications: NotificationRepository


@dataclass(frozen=True)
class Container:
    repos: Repositories
    clock: LocalClock

    registration_service: RegistrationService
    attendance_service: AttendanceService
    payroll_service: PayrollService
    violation_service: ViolationService

    conn: Optional[DatabaseConnection] = None


def _setting(settings: Any, name: str, default: Any) -> Any:
    return getattr(settings, name, default) if settings is not None else default


def wire(
    repos: Repositories,
    *,
    settings: Optional[ModuleType] = None,
    clock: Optional[LocalClock] = None,
    tx: Optional[TransactionManager] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build services over any set of repositories (MySQL or in-memory)."""

    clock = clock or LocalClock(int(_setting(settings, "UTC_OFFSET_MINUTES", constants.DEFAULT_UTC_OFFSET_MINUTES)))
    notifier = NotificationDispatcher(repos.notifications)

    late_penalty = float(_setting(settings, "LATE_PENALTY_PER_CHECKIN", 0))
    lateness: LatenessPolicy = NoLatenessPenalty()
    if late_penalty > 0:
        lateness = FlatLatenessPenalty(
            late_penalty,
            clock=clock,
            grace_minutes=int(_setting(settings, "LATE_GRACE_MINUTES", constants.DEFAULT_LATE_GRACE_MINUTES)),
        )

    calculator = StandardPayrollCalculator(
        standard_hours=float(_setting(settings, "PAYROLL_STANDARD_HOURS", constants.PAYROLL_STANDARD_HOURS)),
        expected_work_days=int(_setting(settings, "PAYROLL_EXPECTED_WORK_DAYS", constants.PAYROLL_EXPECTED_WORK_DAYS)),
        hours_per_absent_day=float(
            _setting(settings, "PAYROLL_HOURS_PER_ABSENT_DAY", constants.PAYROLL_HOURS_PER_ABSENT_DAY)
        ),
    )

    registration_service = RegistrationService(
        repos.registrations,
        repos.shifts,
        repos.employees,
        notifier=notifier,
        clock=clock,
        tx=tx,
    )
    attendance_service = AttendanceService(
        repos.attendance,
        repos.registrations,
        repos.shifts,
        repos.branches,
        repos.employees,
        clock=clock,
        tx=tx,
        early_minutes=int(_setting(settings, "CHECKIN_EARLY_MINUTES", constants.DEFAULT_CHECKIN_EARLY_MINUTES)),
    )
    payroll_service = PayrollService(
        repos.payrolls,
        repos.attendance,
        repos.employees,
        repos.violations,
        calculator=calculator,
        lateness=lateness,
        clock=clock,
    )
    violation_service = ViolationService(
        repos.violations,
        repos.employees,
        repos.shifts,
        notifier=notifier,
        clock=clock,
    )

    return Container(
        repos=repos,
        clock=clock,
        registration_service=registration_service,
        attendance_service=attendance_service,
        payroll_service=payroll_service,
        violation_service=violation_service,
        conn=conn,
    )


def build_container(*, db_config: dict, settings: Optional[ModuleType] = None) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    repos = Repositories(
        branches=MySQLBranchRepository(
            conn,
            default_radius_meters=int(
                _setting(settings, "DEFAULT_GEOFENCE_RADIUS_METERS", constants.DEFAULT_GEOFENCE_RADIUS_METERS)
            ),
        ),
        employees=MySQLEmployeeRepository(conn),
        shifts=MySQLShiftRepository(conn),
        registrations=MySQLRegistrationRepository(conn),
        attendance=MySQLAttendanceRepository(conn),
        payrolls=MySQLPayrollRepository(conn),
        violations=MySQLViolationRepository(conn),
        notifications=MySQLNotificationRepository(conn),
    )
    return wire(repos, settings=settings, tx=conn, conn=conn)
