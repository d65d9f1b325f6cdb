from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import Role
from .exceptions import AuthorizationError


@dataclass(frozen=True)
class RequestingUser:
    """Authenticated caller passed explicitly into every service call."""

    user_id: int
    role: Role
    branch_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER

    @property
    def is_employee(self) -> bool:
        return self.role == Role.EMPLOYEE

    def require_branch(self) -> int:
        """Branch a manager is scoped to."""

        if self.branch_id is None:
            raise AuthorizationError("Manager is not assigned to a branch")
        return int(self.branch_id)
