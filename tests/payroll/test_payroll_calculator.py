from datetime import date, datetime, time, timedelta, timezone

import pytest

from shiftwork.attendance.model import AttendanceRecord, AttendanceRow
from shiftwork.common.clock import LocalClock
from shiftwork.core.enums import AttendanceStatus
from shiftwork.payroll.calculator.base import PayrollInputs
from shiftwork.payroll.calculator.lateness import FlatLatenessPenalty, NoLatenessPenalty
from shiftwork.payroll.calculator.standard_calculator import StandardPayrollCalculator

ICT = timezone(timedelta(hours=7))


def inputs(**overrides):
    values = dict(
        base_salary=4_000_000,
        overtime_rate=1.5,
        bonuses=0,
        other_deductions=0,
        total_work_hours=170,
        checked_out_days=22,
        violation_penalties=50_000,
        late_deductions=0,
    )
    values.update(overrides)
    return PayrollInputs(**values)


def test_standard_calculator_overtime_and_violations():
    figures = StandardPayrollCalculator().calculate(inputs())

    assert figures.overtime_hours == 10
    assert figures.overtime_pay == 375_000
    assert figures.gross_salary == 4_375_000
    assert figures.deductions.absences == 0
    assert figures.deductions.total == 50_000
    assert figures.net_salary == 4_325_000


def test_standard_calculator_charges_missing_days():
    figures = StandardPayrollCalculator().calculate(
        inputs(total_work_hours=150, checked_out_days=20, violation_penalties=0, bonuses=100_000)
    )

    assert figures.overtime_hours == 0
    assert figures.gross_salary == 4_100_000
    # 2 days * 8h * 25,000/h
    assert figures.deductions.absences == 400_000
    assert figures.net_salary == 3_700_000


def test_net_salary_never_negative():
    figures = StandardPayrollCalculator().calculate(
        inputs(total_work_hours=0, checked_out_days=0, other_deductions=10_000_000)
    )
    assert figures.net_salary == 0


def test_calculator_rejects_zero_standard_hours():
    with pytest.raises(ValueError):
        StandardPayrollCalculator(standard_hours=0)


def _row(check_in_local_hhmm, start=time(9, 0), end=time(17, 0)):
    hour, minute = check_in_local_hhmm
    check_in = datetime(2025, 10, 15, hour, minute, tzinfo=ICT)
    record = AttendanceRecord(
        attendance_id=1,
        employee_id=3,
        shift_id=1,
        registration_id=1,
        work_date=date(2025, 10, 15),
        status=AttendanceStatus.CHECKED_OUT,
        check_in_time=check_in,
    )
    return AttendanceRow(
        record=record,
        employee_name="An Nguyen",
        employee_branch_id=1,
        shift_name="Shift",
        start_time=start,
        end_time=end,
    )


def test_flat_lateness_penalty_counts_late_check_ins():
    policy = FlatLatenessPenalty(20_000, clock=LocalClock(420), grace_minutes=5)
    rows = [_row((8, 50)), _row((9, 5)), _row((9, 6)), _row((10, 30))]

    assert [policy.is_late(r) for r in rows] == [False, False, True, True]
    assert policy.deduction(rows) == 40_000


def test_lateness_wraps_for_overnight_shifts():
    policy = FlatLatenessPenalty(20_000, clock=LocalClock(420), grace_minutes=5)
    night = dict(start=time(22, 0), end=time(6, 0))

    assert not policy.is_late(_row((21, 40), **night))
    assert policy.is_late(_row((0, 30), **night))


def test_no_lateness_penalty():
    assert NoLatenessPenalty().deduction([_row((11, 0))]) == 0


@pytest.mark.parametrize(
    "overrides",
    [
        dict(base_salary=1000, total_work_hours=161.01, checked_out_days=21, violation_penalties=0.005),
        dict(base_salary=3333.33, total_work_hours=167.77, bonuses=0.015, other_deductions=1.115),
        dict(base_salary=7_654_321, total_work_hours=203.33, checked_out_days=17, late_deductions=12_345.675),
    ],
)
def test_net_is_rounded_gross_minus_deductions(overrides):
    figures = StandardPayrollCalculator().calculate(inputs(**overrides))
    assert figures.net_salary == round(max(0.0, figures.gross_salary - figures.deductions.total), 2)
