from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Employee:
    """Directory entry for a staff member (read-only here)."""

    employee_id: int
    full_name: str
    email: str
    role: Role
    branch_id: Optional[int]
