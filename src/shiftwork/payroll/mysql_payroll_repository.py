from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import PayrollStatus, SortOrder
from ..core.pagination import PageRequest
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import PAYROLL_SORT_FIELDS, Deductions, Payroll, PayrollFigures, PayrollFilter
from .repository import PayrollRepository

_COLUMNS = """
    p.payroll_id, p.employee_id, p.branch_id, p.month, p.year, p.base_salary,
    p.total_work_hours, p.overtime_hours, p.overtime_rate, p.overtime_pay, p.bonuses,
    p.deduction_violations, p.deduction_late, p.deduction_absences, p.deduction_other,
    p.gross_salary, p.net_salary, p.status, p.revision, p.paid_at, p.paid_by, p.notes,
    p.created_at, p.updated_at
"""


def _to_payroll(r: dict) -> Payroll:
    figures = PayrollFigures(
        base_salary=float(r["base_salary"]),
        total_work_hours=float(r["total_work_hours"]),
        overtime_hours=float(r["overtime_hours"]),
        overtime_rate=float(r["overtime_rate"]),
        overtime_pay=float(r["overtime_pay"]),
        bonuses=float(r["bonuses"]),
        deductions=Deductions(
            violations=float(r["deduction_violations"]),
            late=float(r["deduction_late"]),
            absences=float(r["deduction_absences"]),
            other=float(r["deduction_other"]),
        ),
        gross_salary=float(r["gross_salary"]),
        net_salary=float(r["net_salary"]),
    )
    return Payroll(
        payroll_id=int(r["payroll_id"]),
        employee_id=int(r["employee_id"]),
        branch_id=int(r["branch_id"]),
        month=int(r["month"]),
        year=int(r["year"]),
        figures=figures,
        status=PayrollStatus(r["status"]),
        revision=int(r["revision"]),
        paid_at=from_db_datetime(r.get("paid_at")),
        paid_by=int(r["paid_by"]) if r.get("paid_by") is not None else None,
        notes=r.get("notes"),
        created_at=from_db_datetime(r.get("created_at")),
        updated_at=from_db_datetime(r.get("updated_at")),
    )


def _figure_params(f: PayrollFigures) -> tuple:
    return (
        f.base_salary,
        f.total_work_hours,
        f.overtime_hours,
        f.overtime_rate,
        f.overtime_pay,
        f.bonuses,
        f.deductions.violations,
        f.deductions.late,
        f.deductions.absences,
        f.deductions.other,
        f.gross_salary,
        f.net_salary,
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, payroll_id: int) -> Optional[Payroll]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM payrolls p WHERE p.payroll_id=%s", (int(payroll_id),))
            r = fetchone(cur)
            return _to_payroll(r) if r else None

    def find_for_period(self, *, employee_id: int, month: int, year: int) -> Optional[Payroll]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payrolls p WHERE p.employee_id=%s AND p.month=%s AND p.year=%s",
                (int(employee_id), int(month), int(year)),
            )
            r = fetchone(cur)
            return _to_payroll(r) if r else None

    def create(
        self,
        *,
        employee_id: int,
        branch_id: int,
        month: int,
        year: int,
        figures: PayrollFigures,
        notes: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payrolls(
                    employee_id, branch_id, month, year,
                    base_salary, total_work_hours, overtime_hours, overtime_rate, overtime_pay, bonuses,
                    deduction_violations, deduction_late, deduction_absences, deduction_other,
                    gross_salary, net_salary, status, revision, notes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,'draft',1,%s)
                """,
                (int(employee_id), int(branch_id), int(month), int(year)) + _figure_params(figures) + (notes,),
            )
            return int(cur.lastrowid)

    def update_figures(self, payroll_id: int, *, figures: PayrollFigures, expected_revision: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payrolls
                SET base_salary=%s, total_work_hours=%s, overtime_hours=%s, overtime_rate=%s,
                    overtime_pay=%s, bonuses=%s, deduction_violations=%s, deduction_late=%s,
                    deduction_absences=%s, deduction_other=%s, gross_salary=%s, net_salary=%s,
                    revision=revision + 1
                WHERE payroll_id=%s AND status='draft' AND revision=%s
                """,
                _figure_params(figures) + (int(payroll_id), int(expected_revision)),
            )
            return cur.rowcount > 0

    def update_status(
        self,
        payroll_id: int,
        *,
        status: PayrollStatus,
        notes: Optional[str] = None,
        paid_at: Optional[datetime] = None,
        paid_by: Optional[int] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payrolls
                SET status=%s, notes=COALESCE(%s, notes),
                    paid_at=COALESCE(paid_at, %s), paid_by=COALESCE(paid_by, %s)
                WHERE payroll_id=%s AND status <> 'paid'
                """,
                (status.value, notes, to_db_datetime(paid_at), paid_by, int(payroll_id)),
            )
            return cur.rowcount > 0

    def mark_paid(self, payroll_id: int, *, paid_at: datetime, paid_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payrolls
                SET status='paid', paid_at=%s, paid_by=%s
                WHERE payroll_id=%s AND status='approved' AND paid_at IS NULL
                """,
                (to_db_datetime(paid_at), int(paid_by), int(payroll_id)),
            )
            return cur.rowcount > 0

    def delete_draft(self, payroll_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM payrolls WHERE payroll_id=%s AND status='draft'", (int(payroll_id),))
            return cur.rowcount > 0

    def search(self, flt: PayrollFilter, page: PageRequest) -> tuple[Sequence[Payroll], int]:
        clauses: list[str] = ["1=1"]
        params: list[object] = []
        if flt.employee_id is not None:
            clauses.append("p.employee_id=%s")
            params.append(int(flt.employee_id))
        if flt.branch_id is not None:
            clauses.append("p.branch_id=%s")
            params.append(int(flt.branch_id))
        if flt.month is not None:
            clauses.append("p.month=%s")
            params.append(int(flt.month))
        if flt.year is not None:
            clauses.append("p.year=%s")
            params.append(int(flt.year))
        if flt.status is not None:
            clauses.append("p.status=%s")
            params.append(flt.status.value)
        where = " AND ".join(clauses)

        direction = "ASC" if page.order == SortOrder.ASC else "DESC"
        columns = PAYROLL_SORT_FIELDS.get(page.sort_by, PAYROLL_SORT_FIELDS["date"])
        order_by = ", ".join(f"{c} {direction}" for c in columns)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS cnt FROM payrolls p WHERE {where}", tuple(params))
            total_row = fetchone(cur)
            total = int(total_row["cnt"]) if total_row else 0

            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM payrolls p
                WHERE {where}
                ORDER BY {order_by}, p.payroll_id {direction}
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(page.limit), int(page.offset)),
            )
            return [_to_payroll(r) for r in fetchall(cur)], total
