from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.pagination import PageRequest
from .model import ApprovalOutcome, RegistrationFilter, RegistrationRow, ShiftRegistration


class RegistrationRepository(Protocol):
    def get_by_id(self, registration_id: int) -> Optional[ShiftRegistration]:
        raise NotImplementedError

    def get_row(self, registration_id: int) -> Optional[RegistrationRow]:
        raise NotImplementedError

    def find(self, *, employee_id: int, shift_id: int, work_date: date) -> Optional[ShiftRegistration]:
        raise NotImplementedError

    def list_active_for_employee(self, employee_id: int, work_date: date) -> Sequence[RegistrationRow]:
        """Pending and approved registrations of one employee on one day."""

        raise NotImplementedError

    def count_approved(self, shift_id: int, work_date: date) -> int:
        raise NotImplementedError

    def create(self, *, employee_id: int, shift_id: int, work_date: date, note: Optional[str] = None) -> int:
        raise NotImplementedError

    def approve_within_capacity(
        self,
        registration_id: int,
        *,
        approver_id: int,
        note: Optional[str] = None,
    ) -> ApprovalOutcome:
        """Approve a pending registration unless its shift is full for that day.

        The capacity count and the status change happen atomically.
        """

        raise NotImplementedError

    def reject(self, registration_id: int, *, approver_id: int, note: Optional[str] = None) -> bool:
        """Reject a registration that is still pending. False when it is not."""

        raise NotImplementedError

    def delete(self, registration_id: int) -> bool:
        raise NotImplementedError

    def search(self, flt: RegistrationFilter, page: PageRequest) -> tuple[Sequence[RegistrationRow], int]:
        raise NotImplementedError
