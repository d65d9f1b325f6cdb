from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..common.clock import DayBounds
from ..core.enums import AttendanceStatus, SortOrder
from ..core.pagination import PageRequest
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    from_db_datetime,
    normalize_mysql_time,
    optional_float,
    to_db_datetime,
)
from .model import ATTENDANCE_SORT_FIELDS, AttendanceFilter, AttendanceRecord, AttendanceRow, GeoPoint
from .repository import AttendanceRepository

_RECORD_COLUMNS = """
    a.attendance_id, a.employee_id, a.shift_id, a.registration_id, a.work_date,
    a.check_in_time, a.check_out_time, a.check_in_latitude, a.check_in_longitude,
    a.check_out_latitude, a.check_out_longitude, a.status, a.notes, a.work_hours, a.created_at
"""

_ROW_SELECT = f"""
    SELECT {_RECORD_COLUMNS},
           e.full_name AS employee_name, e.branch_id AS employee_branch_id,
           s.shift_name, s.start_time, s.end_time
    FROM attendance_records a
    JOIN employees e ON e.employee_id = a.employee_id
    JOIN shifts s ON s.shift_id = a.shift_id
"""


def _point(lat, lon) -> Optional[GeoPoint]:
    if lat is None or lon is None:
        return None
    return GeoPoint(latitude=float(lat), longitude=float(lon))


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        shift_id=int(r["shift_id"]),
        registration_id=int(r["registration_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        check_in_time=from_db_datetime(r.get("check_in_time")),
        check_out_time=from_db_datetime(r.get("check_out_time")),
        check_in_location=_point(r.get("check_in_latitude"), r.get("check_in_longitude")),
        check_out_location=_point(r.get("check_out_latitude"), r.get("check_out_longitude")),
        notes=r.get("notes"),
        work_hours=optional_float(r.get("work_hours")),
        created_at=from_db_datetime(r.get("created_at")),
    )


def _to_row(r: dict) -> AttendanceRow:
    return AttendanceRow(
        record=_to_record(r),
        employee_name=r["employee_name"],
        employee_branch_id=int(r["employee_branch_id"]) if r.get("employee_branch_id") is not None else None,
        shift_name=r["shift_name"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records a WHERE a.attendance_id=%s",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_row(self, attendance_id: int) -> Optional[AttendanceRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_ROW_SELECT + " WHERE a.attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_row(r) if r else None

    def find_for_registration(self, registration_id: int, day: DayBounds) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records a
                WHERE a.registration_id=%s
                  AND (a.work_date=%s OR (a.check_in_time >= %s AND a.check_in_time < %s))
                LIMIT 1
                """,
                (
                    int(registration_id),
                    day.local_date,
                    to_db_datetime(day.day_start),
                    to_db_datetime(day.day_end),
                ),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create_checkin(
        self,
        *,
        employee_id: int,
        shift_id: int,
        registration_id: int,
        work_date: date,
        check_in_time: datetime,
        location: GeoPoint,
        notes: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    employee_id, shift_id, registration_id, work_date, check_in_time,
                    check_in_latitude, check_in_longitude, status, notes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    int(shift_id),
                    int(registration_id),
                    work_date,
                    to_db_datetime(check_in_time),
                    location.latitude,
                    location.longitude,
                    AttendanceStatus.CHECKED_IN.value,
                    notes,
                ),
            )
            return int(cur.lastrowid)

    def record_checkout(
        self,
        attendance_id: int,
        *,
        check_out_time: datetime,
        location: GeoPoint,
        work_hours: float,
        notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s, check_out_latitude=%s, check_out_longitude=%s,
                    status=%s, work_hours=%s, notes=COALESCE(%s, notes)
                WHERE attendance_id=%s AND check_in_time IS NOT NULL AND check_out_time IS NULL
                """,
                (
                    to_db_datetime(check_out_time),
                    location.latitude,
                    location.longitude,
                    AttendanceStatus.CHECKED_OUT.value,
                    work_hours,
                    notes,
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def search(self, flt: AttendanceFilter, page: PageRequest) -> tuple[Sequence[AttendanceRow], int]:
        where, params = _filter_clauses(flt)
        sort_column = ATTENDANCE_SORT_FIELDS.get(page.sort_by, "a.work_date")
        direction = "ASC" if page.order == SortOrder.ASC else "DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS cnt
                FROM attendance_records a
                JOIN employees e ON e.employee_id = a.employee_id
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
                ORDER BY {sort_column} {direction}, a.attendance_id {direction}
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(page.limit), int(page.offset)),
            )
            return [_to_row(r) for r in fetchall(cur)], total

    def list_for_period(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[int] = None,
        branch_id: Optional[int] = None,
        statuses: Optional[Iterable[AttendanceStatus]] = None,
    ) -> Sequence[AttendanceRow]:
        where, params = _filter_clauses(
            AttendanceFilter(employee_id=employee_id, branch_id=branch_id, start_date=start_date, end_date=end_date)
        )
        status_values = [s.value for s in (statuses or [])]
        if status_values:
            placeholders = ",".join(["%s"] * len(status_values))
            where += f" AND a.status IN ({placeholders})"
            params.extend(status_values)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _ROW_SELECT + f" {where} ORDER BY a.work_date ASC, a.attendance_id ASC",
                tuple(params),
            )
            return [_to_row(r) for r in fetchall(cur)]


def _filter_clauses(flt: AttendanceFilter) -> tuple[str, list[object]]:
    clauses: list[str] = ["1=1"]
    params: list[object] = []
    if flt.employee_id is not None:
        clauses.append("a.employee_id=%s")
        params.append(int(flt.employee_id))
    if flt.branch_id is not None:
        clauses.append("e.branch_id=%s")
        params.append(int(flt.branch_id))
    if flt.shift_id is not None:
        clauses.append("a.shift_id=%s")
        params.append(int(flt.shift_id))
    if flt.status is not None:
        clauses.append("a.status=%s")
        params.append(flt.status.value)
    if flt.start_date is not None:
        clauses.append("a.work_date >= %s")
        params.append(flt.start_date)
    if flt.end_date is not None:
        clauses.append("a.work_date <= %s")
        params.append(flt.end_date)
    return "WHERE " + " AND ".join(clauses), params
