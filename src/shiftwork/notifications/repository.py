from __future__ import annotations

from typing import Protocol


class NotificationRepository(Protocol):
    def create(self, *, employee_id: int, title: str, message: str) -> int:
        raise NotImplementedError
