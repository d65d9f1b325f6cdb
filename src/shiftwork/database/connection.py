from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import mysql.connector

logger = logging.getLogger(__name__)


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: We create short-lived connections per operation. Inside
    ``transaction()`` every repository call reuses the session connection.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._session: ContextVar[Optional[Any]] = ContextVar(f"shiftwork_session_{id(self)}", default=None)

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
        )

    def active_session(self):
        return self._session.get()

    @contextmanager
    def transaction(self) -> Iterator[Any]:
        """Run the enclosed repository calls on one connection and commit once.

        Nested calls join the outer session. A failure rolls back and is
        re-raised; retrying is left to the caller.
        """

        current = self._session.get()
        if current is not None:
            yield current
            return

        conn = self.connect()
        conn.start_transaction()
        token = self._session.set(conn)
        try:
            yield conn
            conn.commit()
        except Exception:
            logger.warning("Transaction rolled back", exc_info=True)
            conn.rollback()
            raise
        finally:
            self._session.reset(token)
            conn.close()
