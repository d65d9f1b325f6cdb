from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.clock import LocalClock, month_date_range
from ..common.validators import optional_text, require_month, require_number, require_year
from ..core.constants import DEFAULT_OVERTIME_RATE
from ..core.context import RequestingUser
from ..core.enums import AttendanceStatus, PayrollStatus
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DuplicateRecordError,
    NotFoundError,
    ValidationError,
)
from ..core.pagination import Page, PageRequest
from ..employees.repository import EmployeeRepository
from ..violations.repository import ViolationRepository
from .calculator.base import PayrollCalculator, PayrollInputs
from .calculator.lateness import LatenessPolicy, NoLatenessPenalty
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import PAYROLL_SORT_FIELDS, Payroll, PayrollFigures, PayrollFilter
from .repository import PayrollRepository

logger = logging.getLogger(__name__)

PERIOD_EXISTS = "Payroll already exists for this period"


class PayrollService:
    def __init__(
        self,
        payrolls: PayrollRepository,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        violations: ViolationRepository,
        *,
        calculator: Optional[PayrollCalculator] = None,
        lateness: Optional[LatenessPolicy] = None,
        clock: Optional[LocalClock] = None,
    ):
        self._payrolls = payrolls
        self._attendance = attendance
        self._employees = employees
        self._violations = violations
        self._calculator = calculator or StandardPayrollCalculator()
        self._lateness = lateness or NoLatenessPenalty()
        self._clock = clock or LocalClock()

    def calculate_payroll(
        self,
        actor: RequestingUser,
        *,
        employee_id: int,
        month: int,
        year: int,
        base_salary: float,
        overtime_rate: float = DEFAULT_OVERTIME_RATE,
        bonuses: float = 0,
        other_deductions: float = 0,
        notes: Optional[str] = None,
    ) -> Payroll:
        self._require_staff(actor, "calculate payroll")
        month = require_month(month)
        year = require_year(year)
        base_salary = require_number(base_salary, "Base salary", minimum=0)
        overtime_rate = require_number(overtime_rate, "Overtime rate", minimum=1)
        bonuses = require_number(bonuses, "Bonuses", minimum=0)
        other_deductions = require_number(other_deductions, "Other deductions", minimum=0)
        notes = optional_text(notes, "Notes")

        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        if employee.branch_id is None:
            raise ValidationError("Employee is not assigned to a branch")
        if actor.is_manager and employee.branch_id != actor.require_branch():
            raise AuthorizationError("You can only calculate payroll for employees in your branch")

        if self._payrolls.find_for_period(employee_id=employee.employee_id, month=month, year=year):
            raise ConflictError(PERIOD_EXISTS)

        figures = self._compute(
            employee.employee_id,
            month,
            year,
            base_salary=base_salary,
            overtime_rate=overtime_rate,
            bonuses=bonuses,
            other_deductions=other_deductions,
        )
        try:
            payroll_id = self._payrolls.create(
                employee_id=employee.employee_id,
                branch_id=employee.branch_id,
                month=month,
                year=year,
                figures=figures,
                notes=notes,
            )
        except DuplicateRecordError:
            raise ConflictError(PERIOD_EXISTS) from None

        logger.info(
            "Payroll %s calculated: employee=%s period=%02d/%d net=%.2f",
            payroll_id,
            employee.employee_id,
            month,
            year,
            figures.net_salary,
        )
        return self._payrolls.get_by_id(payroll_id)

    def get_payrolls(
        self,
        requester: RequestingUser,
        *,
        flt: Optional[PayrollFilter] = None,
        page: Optional[PageRequest] = None,
    ) -> Page[Payroll]:
        flt = flt or PayrollFilter()
        page = page or PageRequest()
        if page.sort_by not in PAYROLL_SORT_FIELDS:
            raise ValidationError(f"Invalid sort field: {page.sort_by}")

        if requester.is_employee:
            flt = replace(flt, employee_id=requester.user_id, branch_id=None)
        elif requester.is_manager:
            flt = replace(flt, branch_id=requester.require_branch())

        items, total = self._payrolls.search(flt, page)
        return Page.build(items, request=page, total=total)

    def get_payroll_by_id(self, payroll_id: int, requester: RequestingUser) -> Payroll:
        payroll = self._get(payroll_id)
        if requester.is_employee and payroll.employee_id != requester.user_id:
            raise AuthorizationError("You can only view your own payroll")
        if requester.is_manager and payroll.branch_id != requester.require_branch():
            raise AuthorizationError("You can only view payrolls in your branch")
        return payroll

    def update_payroll_status(
        self,
        payroll_id: int,
        actor: RequestingUser,
        *,
        status: PayrollStatus,
        notes: Optional[str] = None,
    ) -> Payroll:
        self._require_staff(actor, "update payroll status")
        notes = optional_text(notes, "Notes")
        payroll = self._get_in_scope(payroll_id, actor)

        if payroll.status == PayrollStatus.PAID:
            raise ValidationError("This payroll has already been paid")
        if status == PayrollStatus.PAID and payroll.status != PayrollStatus.APPROVED:
            raise ValidationError(f"Can only pay approved payrolls. Current status: {payroll.status.value}")

        paid_at = paid_by = None
        if status == PayrollStatus.PAID:
            paid_at, paid_by = self._clock.now(), actor.user_id

        if not self._payrolls.update_status(payroll_id, status=status, notes=notes, paid_at=paid_at, paid_by=paid_by):
            raise ValidationError("This payroll has already been paid")

        logger.info(
            "Payroll %s status %s -> %s by %s",
            payroll_id,
            payroll.status.value,
            status.value,
            actor.user_id,
        )
        return self._payrolls.get_by_id(payroll_id)

    def recalculate_payroll(self, payroll_id: int, actor: RequestingUser) -> Payroll:
        """Recompute a draft in place, keeping its bonuses and other deductions."""

        self._require_staff(actor, "recalculate payroll")
        payroll = self._get_in_scope(payroll_id, actor)
        if not payroll.is_draft:
            raise ValidationError("Can only recalculate draft payrolls")

        current = payroll.figures
        figures = self._compute(
            payroll.employee_id,
            payroll.month,
            payroll.year,
            base_salary=current.base_salary,
            overtime_rate=current.overtime_rate,
            bonuses=current.bonuses,
            other_deductions=current.deductions.other,
        )
        if not self._payrolls.update_figures(payroll_id, figures=figures, expected_revision=payroll.revision):
            raise ConflictError("Payroll changed while recalculating, please retry")

        logger.info(
            "Payroll %s recalculated (revision %d -> %d) net=%.2f",
            payroll_id,
            payroll.revision,
            payroll.revision + 1,
            figures.net_salary,
        )
        return self._payrolls.get_by_id(payroll_id)

    def delete_payroll(self, payroll_id: int, actor: RequestingUser) -> None:
        if not actor.is_admin:
            raise AuthorizationError("Only admins can delete payroll")
        payroll = self._get(payroll_id)
        if not payroll.is_draft:
            raise ValidationError("Can only delete draft payrolls")
        if not self._payrolls.delete_draft(payroll_id):
            raise ValidationError("Can only delete draft payrolls")
        logger.info("Payroll %s deleted by %s", payroll_id, actor.user_id)

    def process_payment(self, payroll_id: int, actor: RequestingUser) -> Payroll:
        if not actor.is_admin:
            raise AuthorizationError("Only admins can process payments")
        payroll = self._get(payroll_id)
        if payroll.status != PayrollStatus.APPROVED:
            raise ValidationError(f"Can only pay approved payrolls. Current status: {payroll.status.value}")
        if payroll.paid_at is not None:
            raise ValidationError("This payroll has already been paid")

        if not self._payrolls.mark_paid(payroll_id, paid_at=self._clock.now(), paid_by=actor.user_id):
            raise ValidationError("This payroll has already been paid")

        logger.info("Payroll %s paid by %s", payroll_id, actor.user_id)
        return self._payrolls.get_by_id(payroll_id)

    def _compute(
        self,
        employee_id: int,
        month: int,
        year: int,
        *,
        base_salary: float,
        overtime_rate: float,
        bonuses: float,
        other_deductions: float,
    ) -> PayrollFigures:
        start, end = month_date_range(month, year)
        rows = self._attendance.list_for_period(
            start_date=start,
            end_date=end,
            employee_id=employee_id,
            statuses=(AttendanceStatus.CHECKED_IN, AttendanceStatus.CHECKED_OUT),
        )
        total_hours = sum(r.record.work_hours or 0 for r in rows)
        checked_out_days = sum(1 for r in rows if r.record.status == AttendanceStatus.CHECKED_OUT)

        return self._calculator.calculate(
            PayrollInputs(
                base_salary=base_salary,
                overtime_rate=overtime_rate,
                bonuses=bonuses,
                other_deductions=other_deductions,
                total_work_hours=total_hours,
                checked_out_days=checked_out_days,
                violation_penalties=self._violations.sum_penalties_for_period(employee_id, month, year),
                late_deductions=self._lateness.deduction(rows),
            )
        )

    def _get(self, payroll_id: int) -> Payroll:
        payroll = self._payrolls.get_by_id(payroll_id)
        if not payroll:
            raise NotFoundError("Payroll not found")
        return payroll

    def _get_in_scope(self, payroll_id: int, actor: RequestingUser) -> Payroll:
        payroll = self._get(payroll_id)
        if actor.is_manager and payroll.branch_id != actor.require_branch():
            raise AuthorizationError("You can only manage payrolls in your branch")
        return payroll

    @staticmethod
    def _require_staff(actor: RequestingUser, action: str) -> None:
        if not (actor.is_admin or actor.is_manager):
            raise AuthorizationError(f"Only managers and admins can {action}")
