from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from .constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from .enums import SortOrder
from .exceptions import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT
    sort_by: str = "date"
    order: SortOrder = SortOrder.DESC

    def __post_init__(self):
        if int(self.page) < 1:
            raise ValidationError("page must be a positive integer")
        if int(self.limit) < 1 or int(self.limit) > MAX_PAGE_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_LIMIT}")

    @property
    def offset(self) -> int:
        return (int(self.page) - 1) * int(self.limit)


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    page: int
    limit: int
    total: int
    total_pages: int = 0

    @classmethod
    def build(cls, items: Sequence[T], *, request: PageRequest, total: int) -> "Page[T]":
        return cls(
            items=list(items),
            page=request.page,
            limit=request.limit,
            total=int(total),
            total_pages=math.ceil(int(total) / request.limit) if total else 0,
        )

    def pagination(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }
