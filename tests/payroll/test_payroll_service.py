from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from shiftwork.attendance.model import AttendanceRecord
from shiftwork.core.enums import AttendanceStatus, PayrollStatus
from shiftwork.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from shiftwork.payroll.model import PayrollFilter
from tests.fakes import build_world

ICT = timezone(timedelta(hours=7))


def worked(world, employee_id, day, *, hours=8.5, check_in=(8, 55), status=AttendanceStatus.CHECKED_OUT):
    start = datetime(2025, 10, day, *check_in, tzinfo=ICT)
    world.attendance.add(
        AttendanceRecord(
            attendance_id=0,
            employee_id=employee_id,
            shift_id=1,
            registration_id=day,
            work_date=date(2025, 10, day),
            status=status,
            check_in_time=start,
            check_out_time=start + timedelta(hours=hours) if status == AttendanceStatus.CHECKED_OUT else None,
            work_hours=hours if status == AttendanceStatus.CHECKED_OUT else None,
        )
    )


def calculate(world, actor, **kwargs):
    values = dict(employee_id=3, month=10, year=2025, base_salary=4_000_000)
    values.update(kwargs)
    return world.container.payroll_service.calculate_payroll(actor, **values)


def test_calculate_payroll_from_attendance_and_violations(world, manager):
    for day in range(1, 21):
        worked(world, 3, day)
    # outside the period
    world.attendance.add(
        AttendanceRecord(
            attendance_id=0,
            employee_id=3,
            shift_id=1,
            registration_id=99,
            work_date=date(2025, 11, 1),
            status=AttendanceStatus.CHECKED_OUT,
            work_hours=8,
        )
    )
    world.violations.create(
        employee_id=3,
        branch_id=1,
        title="Late",
        description="Late twice",
        violation_date=date(2025, 10, 10),
        penalty_amount=50_000,
        created_by=2,
    )

    payroll = calculate(world, manager)
    f = payroll.figures

    assert payroll.status == PayrollStatus.DRAFT
    assert payroll.branch_id == 1
    assert payroll.revision == 1
    assert f.total_work_hours == 170
    assert f.overtime_pay == 375_000
    assert f.deductions.violations == 50_000
    assert f.deductions.absences == 400_000
    assert f.net_salary == 3_925_000


def test_open_check_ins_count_toward_days_worked_only_when_checked_out(world, admin):
    worked(world, 3, 1)
    worked(world, 3, 2, status=AttendanceStatus.CHECKED_IN)

    f = calculate(world, admin).figures
    assert f.total_work_hours == 8.5
    # 21 of 22 expected days missing
    assert f.deductions.absences == 21 * 8 * 25_000


def test_one_payroll_per_employee_and_month(world, admin):
    calculate(world, admin)
    with pytest.raises(ConflictError, match="already exists"):
        calculate(world, admin)
    # another month is fine
    calculate(world, admin, month=11)


def test_calculate_payroll_permissions(world, an, other_manager, admin):
    with pytest.raises(AuthorizationError):
        calculate(world, an)
    with pytest.raises(AuthorizationError):
        calculate(world, other_manager)
    with pytest.raises(NotFoundError):
        calculate(world, admin, employee_id=77)


def test_calculate_payroll_validates_input(world, admin):
    with pytest.raises(ValidationError, match="Month"):
        calculate(world, admin, month=0)
    with pytest.raises(ValidationError, match="Base salary"):
        calculate(world, admin, base_salary=-1)
    with pytest.raises(ValidationError, match="Overtime rate"):
        calculate(world, admin, overtime_rate=0.5)


def test_status_lifecycle(world, manager, admin):
    svc = world.container.payroll_service
    payroll = calculate(world, manager)

    with pytest.raises(ValidationError, match="Can only pay approved"):
        svc.update_payroll_status(payroll.payroll_id, manager, status=PayrollStatus.PAID)

    svc.update_payroll_status(payroll.payroll_id, manager, status=PayrollStatus.PENDING)
    svc.update_payroll_status(payroll.payroll_id, manager, status=PayrollStatus.APPROVED)
    paid = svc.update_payroll_status(payroll.payroll_id, manager, status=PayrollStatus.PAID, notes="bank")

    assert paid.status == PayrollStatus.PAID
    assert paid.paid_by == 2
    assert paid.paid_at is not None
    assert paid.notes == "bank"

    with pytest.raises(ValidationError, match="already been paid"):
        svc.update_payroll_status(payroll.payroll_id, admin, status=PayrollStatus.DRAFT)


def test_status_update_is_branch_scoped(world, manager, other_manager, an):
    payroll = calculate(world, manager)
    svc = world.container.payroll_service

    with pytest.raises(AuthorizationError):
        svc.update_payroll_status(payroll.payroll_id, other_manager, status=PayrollStatus.PENDING)
    with pytest.raises(AuthorizationError):
        svc.update_payroll_status(payroll.payroll_id, an, status=PayrollStatus.PENDING)


def test_process_payment(world, manager, admin):
    svc = world.container.payroll_service
    payroll = calculate(world, manager)

    with pytest.raises(AuthorizationError):
        svc.process_payment(payroll.payroll_id, manager)
    with pytest.raises(ValidationError, match="Current status: draft"):
        svc.process_payment(payroll.payroll_id, admin)

    world.payrolls.set_status(payroll.payroll_id, PayrollStatus.APPROVED)
    paid = svc.process_payment(payroll.payroll_id, admin)
    assert paid.status == PayrollStatus.PAID
    assert paid.paid_by == 1

    with pytest.raises(ValidationError):
        svc.process_payment(payroll.payroll_id, admin)


def test_recalculate_keeps_adjustments_and_bumps_revision(world, manager):
    svc = world.container.payroll_service
    worked(world, 3, 1)
    payroll = calculate(world, manager, bonuses=200_000, other_deductions=100_000, overtime_rate=2)

    worked(world, 3, 2)
    world.violations.create(
        employee_id=3,
        branch_id=1,
        title="Uniform",
        description="No badge",
        violation_date=date(2025, 10, 3),
        penalty_amount=30_000,
        created_by=2,
    )
    updated = svc.recalculate_payroll(payroll.payroll_id, manager)

    assert updated.payroll_id == payroll.payroll_id
    assert updated.revision == 2
    assert updated.figures.total_work_hours == 17
    assert updated.figures.bonuses == 200_000
    assert updated.figures.overtime_rate == 2
    assert updated.figures.deductions.other == 100_000
    assert updated.figures.deductions.violations == 30_000


def test_only_drafts_are_recalculated_or_deleted(world, manager, admin):
    svc = world.container.payroll_service
    payroll = calculate(world, manager)
    svc.update_payroll_status(payroll.payroll_id, manager, status=PayrollStatus.PENDING)

    with pytest.raises(ValidationError, match="draft"):
        svc.recalculate_payroll(payroll.payroll_id, manager)
    with pytest.raises(ValidationError, match="draft"):
        svc.delete_payroll(payroll.payroll_id, admin)


def test_delete_draft_payroll(world, manager, admin):
    svc = world.container.payroll_service
    payroll = calculate(world, manager)

    with pytest.raises(AuthorizationError):
        svc.delete_payroll(payroll.payroll_id, manager)

    svc.delete_payroll(payroll.payroll_id, admin)
    with pytest.raises(NotFoundError):
        svc.get_payroll_by_id(payroll.payroll_id, admin)


def test_listing_is_scoped(world, admin, manager, other_manager, an, binh):
    svc = world.container.payroll_service
    calculate(world, admin)
    calculate(world, admin, employee_id=4)
    calculate(world, admin, employee_id=5)

    assert svc.get_payrolls(admin).total == 3
    assert svc.get_payrolls(admin, flt=PayrollFilter(branch_id=2)).total == 1
    assert svc.get_payrolls(manager).total == 2
    assert svc.get_payrolls(other_manager).total == 1
    assert [p.employee_id for p in svc.get_payrolls(an).items] == [3]

    mine = svc.get_payrolls(an).items[0]
    with pytest.raises(AuthorizationError):
        svc.get_payroll_by_id(mine.payroll_id, binh)


def test_lateness_deduction_applies_when_configured(admin):
    world = build_world(settings=SimpleNamespace(LATE_PENALTY_PER_CHECKIN=20_000, LATE_GRACE_MINUTES=5))
    worked(world, 3, 1, check_in=(8, 55))
    worked(world, 3, 2, check_in=(9, 20))
    worked(world, 3, 3, check_in=(9, 45))

    f = calculate(world, admin).figures
    assert f.deductions.late == 40_000


def test_concurrent_calculation_caught_by_unique_key(world, admin, monkeypatch):
    calculate(world, admin)
    monkeypatch.setattr(world.payrolls, "find_for_period", lambda **kwargs: None)

    with pytest.raises(ConflictError, match="already exists"):
        calculate(world, admin)


@pytest.mark.parametrize("field", ["base_salary", "bonuses", "other_deductions", "overtime_rate"])
def test_calculate_rejects_non_finite_amounts(world, admin, field):
    with pytest.raises(ValidationError, match="finite"):
        calculate(world, admin, **{field: float("inf")})
    with pytest.raises(ValidationError, match="finite"):
        calculate(world, admin, **{field: "nan"})
