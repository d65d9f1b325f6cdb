from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ViolationStatus


@dataclass(frozen=True)
class Violation:
    violation_id: int
    employee_id: int
    branch_id: int
    title: str
    description: str
    violation_date: date
    penalty_amount: float
    status: ViolationStatus
    created_by: int
    shift_id: Optional[int] = None
    notes: Optional[str] = None
    acknowledged_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ViolationFilter:
    employee_id: Optional[int] = None
    branch_id: Optional[int] = None
    status: Optional[ViolationStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
