from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Best-effort side channel for user notifications.

    ``notify`` never raises: failures are logged and dropped, and nothing is
    retried. Callers must not branch on the outcome.
    """

    def __init__(self, notifications: NotificationRepository):
        self._notifications = notifications

    def notify(self, employee_id: int, title: str, message: str) -> None:
        try:
            self._notifications.create(employee_id=int(employee_id), title=title, message=message)
        except Exception:
            logger.exception("Failed to send notification %r to employee %s", title, employee_id)

    def new_shift_registration(self, manager_id: int, *, employee_name: str, work_date: date, shift_time: str) -> None:
        self.notify(
            manager_id,
            "New Shift Registration",
            f"{employee_name} has registered for shift on {work_date.isoformat()} ({shift_time}). "
            "Please review and approve.",
        )

    def shift_approved(self, employee_id: int, *, work_date: date, shift_time: str) -> None:
        self.notify(
            employee_id,
            "Shift Registration Approved",
            f"Your shift registration for {work_date.isoformat()} ({shift_time}) has been approved.",
        )

    def shift_rejected(self, employee_id: int, *, work_date: date, shift_time: str, reason: Optional[str] = None) -> None:
        reason_text = f" Reason: {reason}" if reason else ""
        self.notify(
            employee_id,
            "Shift Registration Rejected",
            f"Your shift registration for {work_date.isoformat()} ({shift_time}) has been rejected.{reason_text}",
        )

    def violation_recorded(self, employee_id: int, *, title: str, penalty_amount: float) -> None:
        self.notify(
            employee_id,
            "Violation Recorded",
            f"You have received a violation: {title}. Penalty: {penalty_amount:,.0f}. Please review the details.",
        )
