from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Employee


class EmployeeRepository(Protocol):
    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def list_by_branch(self, branch_id: int, *, role: Optional[Role] = None) -> Sequence[Employee]:
        raise NotImplementedError
