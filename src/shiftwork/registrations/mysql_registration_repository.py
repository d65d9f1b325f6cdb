from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import RegistrationStatus, SortOrder
from ..core.pagination import PageRequest
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, normalize_mysql_time
from .model import (
    REGISTRATION_SORT_FIELDS,
    ApprovalOutcome,
    RegistrationFilter,
    RegistrationRow,
    ShiftRegistration,
)
from .repository import RegistrationRepository

_ROW_SELECT = """
    SELECT r.registration_id, r.employee_id, r.shift_id, r.work_date, r.status, r.note,
           r.approved_by, r.created_at, r.updated_at,
           e.full_name AS employee_name, e.branch_id AS employee_branch_id,
           s.shift_name, s.start_time, s.end_time, s.branch_id AS shift_branch_id
    FROM shift_registrations r
    JOIN employees e ON e.employee_id = r.employee_id
    JOIN shifts s ON s.shift_id = r.shift_id
"""


def _to_registration(r: dict) -> ShiftRegistration:
    return ShiftRegistration(
        registration_id=int(r["registration_id"]),
        employee_id=int(r["employee_id"]),
        shift_id=int(r["shift_id"]),
        work_date=r["work_date"],
        status=RegistrationStatus(r["status"]),
        note=r.get("note"),
        approved_by=int(r["approved_by"]) if r.get("approved_by") is not None else None,
        created_at=from_db_datetime(r.get("created_at")),
        updated_at=from_db_datetime(r.get("updated_at")),
    )


def _to_row(r: dict) -> RegistrationRow:
    return RegistrationRow(
        registration=_to_registration(r),
        employee_name=r["employee_name"],
        employee_branch_id=int(r["employee_branch_id"]) if r.get("employee_branch_id") is not None else None,
        shift_name=r["shift_name"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        shift_branch_id=int(r["shift_branch_id"]),
    )


class MySQLRegistrationRepository(RegistrationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, registration_id: int) -> Optional[ShiftRegistration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT registration_id, employee_id, shift_id, work_date, status, note,
                       approved_by, created_at, updated_at
                FROM shift_registrations
                WHERE registration_id=%s
                """,
                (int(registration_id),),
            )
            r = fetchone(cur)
            return _to_registration(r) if r else None

    def get_row(self, registration_id: int) -> Optional[RegistrationRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_ROW_SELECT + " WHERE r.registration_id=%s", (int(registration_id),))
            r = fetchone(cur)
            return _to_row(r) if r else None

    def find(self, *, employee_id: int, shift_id: int, work_date: date) -> Optional[ShiftRegistration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT registration_id, employee_id, shift_id, work_date, status, note,
                       approved_by, created_at, updated_at
                FROM shift_registrations
                WHERE employee_id=%s AND shift_id=%s AND work_date=%s
                """,
                (int(employee_id), int(shift_id), work_date),
            )
            r = fetchone(cur)
            return _to_registration(r) if r else None

    def list_active_for_employee(self, employee_id: int, work_date: date) -> Sequence[RegistrationRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _ROW_SELECT
                + """
                WHERE r.employee_id=%s AND r.work_date=%s AND r.status IN ('pending', 'approved')
                ORDER BY s.start_time
                """,
                (int(employee_id), work_date),
            )
            return [_to_row(r) for r in fetchall(cur)]

    def count_approved(self, shift_id: int, work_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS cnt
                FROM shift_registrations
                WHERE shift_id=%s AND work_date=%s AND status='approved'
                """,
                (int(shift_id), work_date),
            )
            r = fetchone(cur)
            return int(r["cnt"]) if r else 0

    def create(self, *, employee_id: int, shift_id: int, work_date: date, note: Optional[str] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shift_registrations(employee_id, shift_id, work_date, status, note)
                VALUES(%s,%s,%s,'pending',%s)
                """,
                (int(employee_id), int(shift_id), work_date, note),
            )
            return int(cur.lastrowid)

    def approve_within_capacity(
        self,
        registration_id: int,
        *,
        approver_id: int,
        note: Optional[str] = None,
    ) -> ApprovalOutcome:
        with self._conn_factory.transaction():
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    SELECT registration_id, shift_id, work_date, status
                    FROM shift_registrations
                    WHERE registration_id=%s
                    FOR UPDATE
                    """,
                    (int(registration_id),),
                )
                reg = fetchone(cur)
                if not reg:
                    return ApprovalOutcome.NOT_FOUND
                if reg["status"] != RegistrationStatus.PENDING.value:
                    return ApprovalOutcome.NOT_PENDING

                # Serialises concurrent approvals for the same shift.
                cur.execute(
                    "SELECT max_employees FROM shifts WHERE shift_id=%s FOR UPDATE",
                    (int(reg["shift_id"]),),
                )
                shift = fetchone(cur)
                capacity = shift.get("max_employees") if shift else None
                if capacity:
                    cur.execute(
                        """
                        SELECT COUNT(*) AS cnt
                        FROM shift_registrations
                        WHERE shift_id=%s AND work_date=%s AND status='approved'
                        """,
                        (int(reg["shift_id"]), reg["work_date"]),
                    )
                    approved = fetchone(cur)
                    if approved and int(approved["cnt"]) >= int(capacity):
                        return ApprovalOutcome.CAPACITY_REACHED

                cur.execute(
                    """
                    UPDATE shift_registrations
                    SET status='approved', approved_by=%s, note=COALESCE(%s, note)
                    WHERE registration_id=%s AND status='pending'
                    """,
                    (int(approver_id), note, int(registration_id)),
                )
                return ApprovalOutcome.APPROVED if cur.rowcount > 0 else ApprovalOutcome.NOT_PENDING

    def reject(self, registration_id: int, *, approver_id: int, note: Optional[str] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shift_registrations
                SET status='rejected', approved_by=%s, note=COALESCE(%s, note)
                WHERE registration_id=%s AND status='pending'
                """,
                (int(approver_id), note, int(registration_id)),
            )
            return cur.rowcount > 0

    def delete(self, registration_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM shift_registrations WHERE registration_id=%s", (int(registration_id),))
            return cur.rowcount > 0

    def search(self, flt: RegistrationFilter, page: PageRequest) -> tuple[Sequence[RegistrationRow], int]:
        clauses: list[str] = []
        params: list[object] = []
        if flt.employee_id is not None:
            clauses.append("r.employee_id=%s")
            params.append(int(flt.employee_id))
        if flt.branch_id is not None:
            clauses.append("e.branch_id=%s")
            params.append(int(flt.branch_id))
        if flt.shift_id is not None:
            clauses.append("r.shift_id=%s")
            params.append(int(flt.shift_id))
        if flt.status is not None:
            clauses.append("r.status=%s")
            params.append(flt.status.value)
        if flt.work_date is not None:
            clauses.append("r.work_date=%s")
            params.append(flt.work_date)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        sort_column = REGISTRATION_SORT_FIELDS.get(page.sort_by, "r.work_date")
        direction = "ASC" if page.order == SortOrder.ASC else "DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS cnt
                FROM shift_registrations r
                JOIN employees e ON e.employee_id = r.employee_id
                {where}
                """,
                tuple(params),
            )
            total_row = fetchone(cur)
            total = int(total_row["cnt"]) if total_row else 0

            cur.execute(
                _ROW_SELECT
                + f"""
                {where}
                ORDER BY {sort_column} {direction}, r.registration_id {direction}
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(page.limit), int(page.offset)),
            )
            return [_to_row(r) for r in fetchall(cur)], total
