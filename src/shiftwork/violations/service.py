from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Optional

from ..common.clock import LocalClock
from ..common.validators import optional_text, require_month, require_non_empty, require_number, require_year
from ..core.context import RequestingUser
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.pagination import Page, PageRequest
from ..employees.repository import EmployeeRepository
from ..notifications.dispatcher import NotificationDispatcher
from ..shifts.repository import ShiftRepository
from .model import Violation, ViolationFilter
from .repository import ViolationRepository

logger = logging.getLogger(__name__)


class ViolationService:
    """Penalty ledger; its per-month totals feed payroll deductions."""

    def __init__(
        self,
        violations: ViolationRepository,
        employees: EmployeeRepository,
        shifts: ShiftRepository,
        *,
        notifier: NotificationDispatcher,
        clock: Optional[LocalClock] = None,
    ):
        self._violations = violations
        self._employees = employees
        self._shifts = shifts
        self._notifier = notifier
        self._clock = clock or LocalClock()

    def record_violation(
        self,
        actor: RequestingUser,
        *,
        employee_id: int,
        title: str,
        description: str,
        violation_date: date,
        penalty_amount: float,
        shift_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Violation:
        if not (actor.is_admin or actor.is_manager):
            raise AuthorizationError("Only managers and admins can create violations")

        title = require_non_empty(title, "Title")
        description = require_non_empty(description, "Description")
        penalty_amount = require_number(penalty_amount, "Penalty amount", minimum=0)
        notes = optional_text(notes, "Notes")

        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        if employee.branch_id is None:
            raise ValidationError("Employee is not assigned to a branch")
        if actor.is_manager and employee.branch_id != actor.require_branch():
            raise AuthorizationError("You can only record violations for employees in your branch")

        if shift_id is not None:
            shift = self._shifts.get_by_id(shift_id)
            if not shift:
                raise NotFoundError("Shift not found")
            if shift.branch_id != employee.branch_id:
                raise ValidationError("Shift does not belong to the employee's branch")

        violation_id = self._violations.create(
            employee_id=employee.employee_id,
            branch_id=employee.branch_id,
            title=title,
            description=description,
            violation_date=violation_date,
            penalty_amount=penalty_amount,
            created_by=actor.user_id,
            shift_id=shift_id,
            notes=notes,
        )
        logger.info(
            "Violation %s recorded for employee %s by %s (penalty=%.2f)",
            violation_id,
            employee.employee_id,
            actor.user_id,
            penalty_amount,
        )
        self._notifier.violation_recorded(employee.employee_id, title=title, penalty_amount=penalty_amount)
        return self._violations.get_by_id(violation_id)

    def list_violations(
        self,
        requester: RequestingUser,
        *,
        flt: Optional[ViolationFilter] = None,
        page: Optional[PageRequest] = None,
    ) -> Page[Violation]:
        flt = flt or ViolationFilter()
        page = page or PageRequest()
        if requester.is_employee:
            flt = replace(flt, employee_id=requester.user_id, branch_id=None)
        elif requester.is_manager:
            flt = replace(flt, branch_id=requester.require_branch())

        items, total = self._violations.search(flt, page)
        return Page.build(items, request=page, total=total)

    def get_violation_by_id(self, violation_id: int, requester: RequestingUser) -> Violation:
        violation = self._violations.get_by_id(violation_id)
        if not violation:
            raise NotFoundError("Violation not found")
        if requester.is_employee and violation.employee_id != requester.user_id:
            raise AuthorizationError("You can only view your own violations")
        if requester.is_manager and violation.branch_id != requester.require_branch():
            raise AuthorizationError("You can only view violations in your branch")
        return violation

    def acknowledge_violation(self, violation_id: int, requester: RequestingUser) -> Violation:
        violation = self._violations.get_by_id(violation_id)
        if not violation:
            raise NotFoundError("Violation not found")
        if violation.employee_id != requester.user_id:
            raise AuthorizationError("You can only acknowledge your own violations")
        if not self._violations.acknowledge(violation_id, acknowledged_at=self._clock.now()):
            raise ValidationError("Violation has already been acknowledged")
        logger.info("Violation %s acknowledged by employee %s", violation_id, requester.user_id)
        return self._violations.get_by_id(violation_id)

    def sum_penalties_for_period(self, employee_id: int, month: int, year: int) -> float:
        return self._violations.sum_penalties_for_period(employee_id, require_month(month), require_year(year))
