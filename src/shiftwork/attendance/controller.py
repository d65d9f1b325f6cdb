from __future__ import annotations

from typing import Optional

from flask import Flask, request

from ..common.validators import require_id
from ..common.web import iso, json_body, ok, optional_date, optional_id, page_request, paginated, parse_enum, with_user
from ..container import Container
from ..core.context import RequestingUser
from ..core.enums import AttendanceStatus
from .model import AttendanceFilter, AttendanceRecord, AttendanceRow, GeoPoint


def _point_json(point: Optional[GeoPoint]) -> Optional[dict]:
    if point is None:
        return None
    return {"latitude": point.latitude, "longitude": point.longitude}


def attendance_json(rec: AttendanceRecord) -> dict:
    return {
        "id": rec.attendance_id,
        "employeeId": rec.employee_id,
        "shiftId": rec.shift_id,
        "registrationId": rec.registration_id,
        "date": iso(rec.work_date),
        "checkInTime": iso(rec.check_in_time),
        "checkOutTime": iso(rec.check_out_time),
        "checkInLocation": _point_json(rec.check_in_location),
        "checkOutLocation": _point_json(rec.check_out_location),
        "status": rec.status.value,
        "notes": rec.notes,
        "workHours": rec.work_hours,
    }


def attendance_row_json(row: AttendanceRow) -> dict:
    data = attendance_json(row.record)
    data["employee"] = {"id": row.record.employee_id, "name": row.employee_name}
    data["shift"] = {
        "id": row.record.shift_id,
        "shiftName": row.shift_name,
        "startTime": row.start_time.strftime("%H:%M"),
        "endTime": row.end_time.strftime("%H:%M"),
    }
    return data


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    @with_user
    def check_in(user: RequestingUser):
        body = json_body()
        rec = service.check_in(
            user,
            registration_id=require_id(body.get("registrationId"), "registrationId"),
            latitude=body.get("latitude"),
            longitude=body.get("longitude"),
            notes=body.get("notes"),
        )
        return ok(attendance_json(rec), status=201, message="Check-in successful")

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    @with_user
    def check_out(user: RequestingUser):
        body = json_body()
        rec = service.check_out(
            user,
            attendance_id=require_id(body.get("attendanceId"), "attendanceId"),
            latitude=body.get("latitude"),
            longitude=body.get("longitude"),
            notes=body.get("notes"),
        )
        return ok(attendance_json(rec), message="Check-out successful")

    @app.route("/api/attendance", methods=["GET"], endpoint="list_attendance")
    @with_user
    def list_attendance(user: RequestingUser):
        args = request.args
        flt = AttendanceFilter(
            employee_id=optional_id(args.get("employeeId"), "employeeId"),
            shift_id=optional_id(args.get("shiftId"), "shiftId"),
            status=parse_enum(AttendanceStatus, args.get("status"), "status"),
            start_date=optional_date(args.get("startDate")),
            end_date=optional_date(args.get("endDate")),
        )
        page = service.get_attendances(user, flt=flt, page=page_request(args))
        return paginated(page, [attendance_row_json(r) for r in page.items])

    @app.route("/api/attendance/report/monthly", methods=["GET"], endpoint="attendance_monthly_report")
    @with_user
    def monthly_report(user: RequestingUser):
        args = request.args
        report = service.get_monthly_report(
            user,
            month=args.get("month"),
            year=args.get("year"),
            employee_id=optional_id(args.get("employeeId"), "employeeId"),
        )
        return ok(
            {
                "month": report.month,
                "year": report.year,
                "summary": report.summary(),
                "attendances": [attendance_row_json(r) for r in report.attendances],
            }
        )

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="get_attendance")
    @with_user
    def get_attendance(user: RequestingUser, attendance_id: int):
        return ok(attendance_row_json(service.get_attendance_by_id(attendance_id, user)))
