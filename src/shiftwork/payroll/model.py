from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PayrollStatus

PAYROLL_SORT_FIELDS = {
    "date": ("p.year", "p.month"),
    "createdAt": ("p.created_at",),
    "netSalary": ("p.net_salary",),
}


@dataclass(frozen=True)
class Deductions:
    violations: float = 0.0
    late: float = 0.0
    absences: float = 0.0
    other: float = 0.0

    @property
    def total(self) -> float:
        return self.violations + self.late + self.absences + self.other

    def to_dict(self) -> dict:
        return {
            "violations": self.violations,
            "lateDeductions": self.late,
            "absences": self.absences,
            "other": self.other,
        }


@dataclass(frozen=True)
class PayrollFigures:
    """Everything a calculator derives for one employee and month."""

    base_salary: float
    total_work_hours: float
    overtime_hours: float
    overtime_rate: float
    overtime_pay: float
    bonuses: float
    deductions: Deductions
    gross_salary: float
    net_salary: float


@dataclass(frozen=True)
class Payroll:
    payroll_id: int
    employee_id: int
    branch_id: int
    month: int
    year: int
    figures: PayrollFigures
    status: PayrollStatus = PayrollStatus.DRAFT
    revision: int = 1
    paid_at: Optional[datetime] = None
    paid_by: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_draft(self) -> bool:
        return self.status == PayrollStatus.DRAFT


@dataclass(frozen=True)
class PayrollFilter:
    employee_id: Optional[int] = None
    branch_id: Optional[int] = None
    month: Optional[int] = None
    year: Optional[int] = None
    status: Optional[PayrollStatus] = None
