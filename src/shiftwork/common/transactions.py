from __future__ import annotations

from contextlib import contextmanager
from typing import Any, ContextManager, Iterator, Protocol


class TransactionManager(Protocol):
    """Anything that can open a unit of work, e.g. ``DatabaseConnection``."""

    def transaction(self) -> ContextManager[Any]:
        raise NotImplementedError


class NoTransaction:
    """Unit of work that does nothing; used by in-memory setups."""

    @contextmanager
    def transaction(self) -> Iterator[None]:
        yield None
