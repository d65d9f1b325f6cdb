from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..model import PayrollFigures


@dataclass(frozen=True)
class PayrollInputs:
    base_salary: float
    overtime_rate: float
    bonuses: float
    other_deductions: float
    total_work_hours: float
    checked_out_days: int
    violation_penalties: float
    late_deductions: float


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def calculate(self, inputs: PayrollInputs) -> PayrollFigures:
        raise NotImplementedError
