from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.pagination import PageRequest
from .model import Violation, ViolationFilter


class ViolationRepository(Protocol):
    def get_by_id(self, violation_id: int) -> Optional[Violation]:
        raise NotImplementedError

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
        raise NotImplementedError

    def acknowledge(self, violation_id: int, *, acknowledged_at: datetime) -> bool:
        """Pending -> acknowledged. False when it is no longer pending."""

        raise NotImplementedError

    def search(self, flt: ViolationFilter, page: PageRequest) -> tuple[Sequence[Violation], int]:
        raise NotImplementedError

    def sum_penalties_for_period(self, employee_id: int, month: int, year: int) -> float:
        raise NotImplementedError
