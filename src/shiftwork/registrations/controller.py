from __future__ import annotations

from flask import Flask, request

from ..common.validators import parse_iso_date, require_id
from ..common.web import iso, json_body, ok, optional_date, optional_id, page_request, paginated, parse_enum, with_user
from ..container import Container
from ..core.context import RequestingUser
from ..core.enums import RegistrationStatus
from .model import RegistrationFilter, RegistrationRow, ShiftRegistration


def registration_json(reg: ShiftRegistration) -> dict:
    return {
        "id": reg.registration_id,
        "employeeId": reg.employee_id,
        "shiftId": reg.shift_id,
        "date": iso(reg.work_date),
        "status": reg.status.value,
        "note": reg.note,
        "approvedBy": reg.approved_by,
        "createdAt": iso(reg.created_at),
        "updatedAt": iso(reg.updated_at),
    }


def registration_row_json(row: RegistrationRow) -> dict:
    data = registration_json(row.registration)
    data["employee"] = {"id": row.registration.employee_id, "name": row.employee_name, "branchId": row.employee_branch_id}
    data["shift"] = {
        "id": row.registration.shift_id,
        "shiftName": row.shift_name,
        "startTime": row.start_time.strftime("%H:%M"),
        "endTime": row.end_time.strftime("%H:%M"),
        "branchId": row.shift_branch_id,
    }
    return data


def register(app: Flask, container: Container) -> None:
    service = container.registration_service

    @app.route("/api/shift-registrations", methods=["GET"], endpoint="list_registrations")
    @with_user
    def list_registrations(user: RequestingUser):
        args = request.args
        flt = RegistrationFilter(
            employee_id=optional_id(args.get("employeeId"), "employeeId"),
            shift_id=optional_id(args.get("shiftId"), "shiftId"),
            status=parse_enum(RegistrationStatus, args.get("status"), "status"),
            work_date=optional_date(args.get("date")),
        )
        page = service.list_registrations(user, flt=flt, page=page_request(args))
        return paginated(page, [registration_row_json(r) for r in page.items])

    @app.route("/api/shift-registrations/<int:registration_id>", methods=["GET"], endpoint="get_registration")
    @with_user
    def get_registration(user: RequestingUser, registration_id: int):
        return ok(registration_row_json(service.get_registration(registration_id, user)))

    @app.route("/api/shift-registrations", methods=["POST"], endpoint="create_registration")
    @with_user
    def create_registration(user: RequestingUser):
        body = json_body()
        reg = service.create_registration(
            user,
            shift_id=require_id(body.get("shiftId"), "shiftId"),
            work_date=parse_iso_date(body.get("date") or ""),
            note=body.get("note"),
        )
        return ok(registration_json(reg), status=201, message="Shift registration created successfully")

    @app.route(
        "/api/shift-registrations/<int:registration_id>/approve",
        methods=["PATCH"],
        endpoint="approve_registration",
    )
    @with_user
    def approve_registration(user: RequestingUser, registration_id: int):
        body = request.get_json(silent=True) or {}
        reg = service.approve_registration(registration_id, user, note=body.get("note"))
        return ok(registration_json(reg), message="Registration approved successfully")

    @app.route(
        "/api/shift-registrations/<int:registration_id>/reject",
        methods=["PATCH"],
        endpoint="reject_registration",
    )
    @with_user
    def reject_registration(user: RequestingUser, registration_id: int):
        body = request.get_json(silent=True) or {}
        reg = service.reject_registration(registration_id, user, note=body.get("note"))
        return ok(registration_json(reg), message="Registration rejected successfully")

    @app.route("/api/shift-registrations/<int:registration_id>", methods=["DELETE"], endpoint="delete_registration")
    @with_user
    def delete_registration(user: RequestingUser, registration_id: int):
        service.delete_registration(registration_id, user)
        return ok(None, message="Registration deleted successfully")
