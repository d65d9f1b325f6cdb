from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..common.clock import month_date_range
from ..core.enums import SortOrder, ViolationStatus
from ..core.pagination import PageRequest
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import Violation, ViolationFilter
from .repository import ViolationRepository

_COLUMNS = """
    violation_id, employee_id, branch_id, shift_id, title, description, violation_date,
    penalty_amount, status, created_by, notes, acknowledged_at, created_at
"""


def _to_violation(r: dict) -> Violation:
    return Violation(
        violation_id=int(r["violation_id"]),
        employee_id=int(r["employee_id"]),
        branch_id=int(r["branch_id"]),
        title=r["title"],
        description=r["description"],
        violation_date=r["violation_date"],
        penalty_amount=float(r["penalty_amount"]),
        status=ViolationStatus(r["status"]),
        created_by=int(r["created_by"]),
        shift_id=int(r["shift_id"]) if r.get("shift_id") is not None else None,
        notes=r.get("notes"),
        acknowledged_at=from_db_datetime(r.get("acknowledged_at")),
        created_at=from_db_datetime(r.get("created_at")),
    )


class MySQLViolationRepository(ViolationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, violation_id: int) -> Optional[Violation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM violations WHERE violation_id=%s", (int(violation_id),))
            r = fetchone(cur)
            return _to_violation(r) if r else None

    def create(
        self,
        *,
        employee_id: int,
        branch_id: int,
        title: str,
        description: str,
        violation_date: date,
        penalty_amount: float,
        created_by: int,
        shift_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO violations(
                    employee_id, branch_id, shift_id, title, description, violation_date,
                    penalty_amount, status, created_by, notes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,'pending',%s,%s)
                """,
                (
                    int(employee_id),
                    int(branch_id),
                    int(shift_id) if shift_id is not None else None,
                    title,
                    description,
                    violation_date,
                    float(penalty_amount),
                    int(created_by),
                    notes,
                ),
            )
            return int(cur.lastrowid)

    def acknowledge(self, violation_id: int, *, acknowledged_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE violations
                SET status='acknowledged', acknowledged_at=%s
                WHERE violation_id=%s AND status='pending'
                """,
                (to_db_datetime(acknowledged_at), int(violation_id)),
            )
            return cur.rowcount > 0

    def search(self, flt: ViolationFilter, page: PageRequest) -> tuple[Sequence[Violation], int]:
        clauses: list[str] = ["1=1"]
        params: list[object] = []
        if flt.employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(flt.employee_id))
        if flt.branch_id is not None:
            clauses.append("branch_id=%s")
            params.append(int(flt.branch_id))
        if flt.status is not None:
            clauses.append("status=%s")
            params.append(flt.status.value)
        if flt.start_date is not None:
            clauses.append("violation_date >= %s")
            params.append(flt.start_date)
        if flt.end_date is not None:
            clauses.append("violation_date <= %s")
            params.append(flt.end_date)
        where = " AND ".join(clauses)
        direction = "ASC" if page.order == SortOrder.ASC else "DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS cnt FROM violations WHERE {where}", tuple(params))
            total_row = fetchone(cur)
            total = int(total_row["cnt"]) if total_row else 0

            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM violations
                WHERE {where}
                ORDER BY violation_date {direction}, violation_id {direction}
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(page.limit), int(page.offset)),
            )
            return [_to_violation(r) for r in fetchall(cur)], total

    def sum_penalties_for_period(self, employee_id: int, month: int, year: int) -> float:
        start, end = month_date_range(month, year)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(penalty_amount), 0) AS total
                FROM violations
                WHERE employee_id=%s AND violation_date BETWEEN %s AND %s
                """,
                (int(employee_id), start, end),
            )
            r = fetchone(cur)
            return float(r["total"]) if r else 0.0
