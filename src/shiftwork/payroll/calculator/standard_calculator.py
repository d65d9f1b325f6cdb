from __future__ import annotations

from .base import PayrollCalculator, PayrollInputs
from ..model import Deductions, PayrollFigures
from ...core.constants import PAYROLL_EXPECTED_WORK_DAYS, PAYROLL_HOURS_PER_ABSENT_DAY, PAYROLL_STANDARD_HOURS


def _money(value: float) -> float:
    return round(float(value), 2)


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: overtime past ``standard_hours``, absences against ``expected_work_days``.

    hourly = base / standard_hours
    overtime_pay = max(0, hours - standard_hours) * hourly * rate
    absences = max(0, expected_work_days - checked_out_days) * hourly * hours_per_absent_day
    net = max(0, base + overtime_pay + bonuses - deductions)
    """

    def __init__(
        self,
        *,
        standard_hours: float = PAYROLL_STANDARD_HOURS,
        expected_work_days: int = PAYROLL_EXPECTED_WORK_DAYS,
        hours_per_absent_day: float = PAYROLL_HOURS_PER_ABSENT_DAY,
    ):
        if standard_hours <= 0:
            raise ValueError("standard_hours must be positive")
        self._standard_hours = float(standard_hours)
        self._expected_work_days = int(expected_work_days)
        self._hours_per_absent_day = float(hours_per_absent_day)

    def calculate(self, inputs: PayrollInputs) -> PayrollFigures:
        base_salary = float(inputs.base_salary)
        total_hours = round(float(inputs.total_work_hours), 2)
        hourly_rate = base_salary / self._standard_hours

        overtime_hours = max(0.0, total_hours - self._standard_hours)
        overtime_pay = overtime_hours * hourly_rate * float(inputs.overtime_rate)
        gross_salary = _money(base_salary + overtime_pay + float(inputs.bonuses))

        missing_days = max(0, self._expected_work_days - int(inputs.checked_out_days))
        deductions = Deductions(
            violations=_money(inputs.violation_penalties),
            late=_money(inputs.late_deductions),
            absences=_money(missing_days * hourly_rate * self._hours_per_absent_day),
            other=_money(inputs.other_deductions),
        )

        return PayrollFigures(
            base_salary=_money(base_salary),
            total_work_hours=total_hours,
            overtime_hours=round(overtime_hours, 2),
            overtime_rate=float(inputs.overtime_rate),
            overtime_pay=_money(overtime_pay),
            bonuses=_money(inputs.bonuses),
            deductions=deductions,
            gross_salary=gross_salary,
            net_salary=_money(max(0.0, gross_salary - deductions.total)),
        )
