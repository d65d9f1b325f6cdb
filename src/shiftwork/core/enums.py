from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles used for authorization and data scoping."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class RegistrationStatus(str, Enum):
    """Approval flow of a shift registration."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AttendanceStatus(str, Enum):
    """Attendance state stored in the database."""

    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    ABSENT = "absent"


class PayrollStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"


class ViolationStatus(str, Enum):
    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"
