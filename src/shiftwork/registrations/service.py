from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Optional

from ..common.clock import LocalClock
from ..common.time_ranges import ranges_overlap
from ..common.transactions import NoTransaction, TransactionManager
from ..common.validators import optional_text
from ..core.context import RequestingUser
from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DuplicateRecordError,
    NotFoundError,
    RecordInUseError,
    ValidationError,
)
from ..core.pagination import Page, PageRequest
from ..employees.repository import EmployeeRepository
from ..notifications.dispatcher import NotificationDispatcher
from ..shifts.model import Shift
from ..shifts.repository import ShiftRepository
from .model import REGISTRATION_SORT_FIELDS, ApprovalOutcome, RegistrationFilter, RegistrationRow, ShiftRegistration
from .repository import RegistrationRepository

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "You have already registered for this shift on this date"


class RegistrationService:
    def __init__(
        self,
        registrations: RegistrationRepository,
        shifts: ShiftRepository,
        employees: EmployeeRepository,
        *,
        notifier: NotificationDispatcher,
        clock: Optional[LocalClock] = None,
        tx: Optional[TransactionManager] = None,
    ):
        self._registrations = registrations
        self._shifts = shifts
        self._employees = employees
        self._notifier = notifier
        self._clock = clock or LocalClock()
        self._tx = tx or NoTransaction()

    def list_registrations(
        self,
        requester: RequestingUser,
        *,
        flt: Optional[RegistrationFilter] = None,
        page: Optional[PageRequest] = None,
    ) -> Page[RegistrationRow]:
        flt = flt or RegistrationFilter()
        page = page or PageRequest()
        if page.sort_by not in REGISTRATION_SORT_FIELDS:
            raise ValidationError(f"Invalid sort field: {page.sort_by}")

        if requester.is_employee:
            flt = replace(flt, employee_id=requester.user_id, branch_id=None)
        elif requester.is_manager:
            flt = replace(flt, branch_id=requester.require_branch())

        rows, total = self._registrations.search(flt, page)
        return Page.build(rows, request=page, total=total)

    def get_registration(self, registration_id: int, requester: RequestingUser) -> RegistrationRow:
        row = self._registrations.get_row(registration_id)
        if not row:
            raise NotFoundError("Registration not found")
        if requester.is_employee and row.registration.employee_id != requester.user_id:
            raise AuthorizationError("You can only view your own registrations")
        if requester.is_manager and row.employee_branch_id != requester.require_branch():
            raise AuthorizationError("You can only view registrations in your branch")
        return row

    def create_registration(
        self,
        requester: RequestingUser,
        *,
        shift_id: int,
        work_date: date,
        note: Optional[str] = None,
    ) -> ShiftRegistration:
        note = optional_text(note, "Note")

        employee = self._employees.get_by_id(requester.user_id)
        if not employee:
            raise NotFoundError("Employee not found")

        shift = self._shifts.get_by_id(shift_id)
        if not shift:
            raise NotFoundError("Shift not found")

        if employee.branch_id is None:
            raise ValidationError("Employee must be assigned to a branch to register for shifts")
        if employee.branch_id != shift.branch_id:
            raise AuthorizationError("You can only register for shifts in your branch")

        if work_date < self._clock.local_date():
            raise ValidationError("Cannot register for shifts in the past")

        with self._tx.transaction():
            if self._registrations.find(employee_id=employee.employee_id, shift_id=shift.shift_id, work_date=work_date):
                raise ConflictError(DUPLICATE_MESSAGE)

            self._check_time_conflict(employee.employee_id, shift, work_date)

            # Early check only; approval re-checks capacity atomically.
            if shift.max_employees:
                approved = self._registrations.count_approved(shift.shift_id, work_date)
                if approved >= shift.max_employees:
                    raise ConflictError(
                        f"This shift has reached the maximum number of employees ({shift.max_employees})"
                    )

            try:
                registration_id = self._registrations.create(
                    employee_id=employee.employee_id,
                    shift_id=shift.shift_id,
                    work_date=work_date,
                    note=note,
                )
            except DuplicateRecordError:
                raise ConflictError(DUPLICATE_MESSAGE) from None

        registration = self._registrations.get_by_id(registration_id)
        logger.info(
            "Registration %s created: employee=%s shift=%s date=%s",
            registration_id,
            employee.employee_id,
            shift.shift_id,
            work_date.isoformat(),
        )

        self._notify_branch_managers(shift, employee_name=employee.full_name or "An employee", work_date=work_date)
        return registration

    def approve_registration(
        self,
        registration_id: int,
        approver: RequestingUser,
        *,
        note: Optional[str] = None,
    ) -> ShiftRegistration:
        note = optional_text(note, "Note")
        row = self._load_for_review(registration_id, approver, action="approve")
        self._require_pending(row.registration.status.value, action="approve")

        outcome = self._registrations.approve_within_capacity(
            registration_id,
            approver_id=approver.user_id,
            note=note,
        )
        if outcome == ApprovalOutcome.NOT_FOUND:
            raise NotFoundError("Registration not found")
        if outcome == ApprovalOutcome.NOT_PENDING:
            current = self._registrations.get_by_id(registration_id)
            if not current:
                raise NotFoundError("Registration not found")
            self._require_pending(current.status.value, action="approve")
        if outcome == ApprovalOutcome.CAPACITY_REACHED:
            shift = self._shifts.get_by_id(row.registration.shift_id)
            capacity = shift.max_employees if shift else None
            raise ConflictError(f"This shift has reached the maximum number of employees ({capacity})")

        logger.info("Registration %s approved by %s", registration_id, approver.user_id)
        self._notifier.shift_approved(
            row.registration.employee_id,
            work_date=row.registration.work_date,
            shift_time=row.time_label,
        )
        return self._registrations.get_by_id(registration_id)

    def reject_registration(
        self,
        registration_id: int,
        approver: RequestingUser,
        *,
        note: Optional[str] = None,
    ) -> ShiftRegistration:
        note = optional_text(note, "Note")
        row = self._load_for_review(registration_id, approver, action="reject")
        self._require_pending(row.registration.status.value, action="reject")

        if not self._registrations.reject(registration_id, approver_id=approver.user_id, note=note):
            current = self._registrations.get_by_id(registration_id)
            if not current:
                raise NotFoundError("Registration not found")
            self._require_pending(current.status.value, action="reject")

        logger.info("Registration %s rejected by %s", registration_id, approver.user_id)
        self._notifier.shift_rejected(
            row.registration.employee_id,
            work_date=row.registration.work_date,
            shift_time=row.time_label,
            reason=note,
        )
        return self._registrations.get_by_id(registration_id)

    def delete_registration(self, registration_id: int, requester: RequestingUser) -> None:
        row = self._registrations.get_row(registration_id)
        if not row:
            raise NotFoundError("Registration not found")

        if requester.is_employee:
            if row.registration.employee_id != requester.user_id:
                raise AuthorizationError("You can only delete your own registrations")
            if not row.registration.is_pending:
                raise ValidationError("You can only delete pending registrations")
        elif requester.is_manager and row.employee_branch_id != requester.require_branch():
            raise AuthorizationError("You can only delete registrations in your branch")

        try:
            deleted = self._registrations.delete(registration_id)
        except RecordInUseError:
            raise ValidationError("Cannot delete a registration that already has attendance records") from None
        if not deleted:
            raise NotFoundError("Registration not found")
        logger.info("Registration %s deleted by %s", registration_id, requester.user_id)

    def _notify_branch_managers(self, shift: Shift, *, employee_name: str, work_date: date) -> None:
        # The registration is already committed; lookup failures must not reach the caller.
        try:
            managers = self._employees.list_by_branch(shift.branch_id, role=Role.MANAGER)
        except Exception:
            logger.exception("Failed to look up managers of branch %s for notification", shift.branch_id)
            return
        for manager in managers:
            self._notifier.new_shift_registration(
                manager.employee_id,
                employee_name=employee_name,
                work_date=work_date,
                shift_time=shift.time_label,
            )

    def _check_time_conflict(self, employee_id: int, shift: Shift, work_date: date) -> None:
        for existing in self._registrations.list_active_for_employee(employee_id, work_date):
            if ranges_overlap(shift.start_minutes, shift.end_minutes, existing.start_minutes, existing.end_minutes):
                raise ConflictError(
                    f"Shift time conflicts with another registered shift: "
                    f"{existing.shift_name} ({existing.time_label})"
                )

    def _load_for_review(self, registration_id: int, approver: RequestingUser, *, action: str) -> RegistrationRow:
        if not (approver.is_admin or approver.is_manager):
            raise AuthorizationError(f"Only managers and admins can {action} registrations")

        row = self._registrations.get_row(registration_id)
        if not row:
            raise NotFoundError("Registration not found")
        if approver.is_manager and row.employee_branch_id != approver.require_branch():
            raise AuthorizationError(f"You can only {action} registrations in your branch")
        return row

    @staticmethod
    def _require_pending(status: str, *, action: str) -> None:
        if status != "pending":
            raise ValidationError(f"Cannot {action} registration with status: {status}")
