from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import PayrollStatus
from ..core.pagination import PageRequest
from .model import Payroll, PayrollFigures, PayrollFilter


class PayrollRepository(Protocol):
    def get_by_id(self, payroll_id: int) -> Optional[Payroll]:
        raise NotImplementedError

    def find_for_period(self, *, employee_id: int, month: int, year: int) -> Optional[Payroll]:
        raise NotImplementedError

    def create(
        self,
        *,
        employee_id: int,
        branch_id: int,
        month: int,
        year: int,
        figures: PayrollFigures,
        notes: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def update_figures(self, payroll_id: int, *, figures: PayrollFigures, expected_revision: int) -> bool:
        """Overwrite a draft's figures and bump its revision.

        False when the payroll is no longer a draft at ``expected_revision``.
        """

        raise NotImplementedError

    def update_status(
        self,
        payroll_id: int,
        *,
        status: PayrollStatus,
        notes: Optional[str] = None,
        paid_at: Optional[datetime] = None,
        paid_by: Optional[int] = None,
    ) -> bool:
        raise NotImplementedError

    def mark_paid(self, payroll_id: int, *, paid_at: datetime, paid_by: int) -> bool:
        """Approved and unpaid -> paid. False when that no longer holds."""

        raise NotImplementedError

    def delete_draft(self, payroll_id: int) -> bool:
        raise NotImplementedError

    def search(self, flt: PayrollFilter, page: PageRequest) -> tuple[Sequence[Payroll], int]:
        raise NotImplementedError
