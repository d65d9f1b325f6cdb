from __future__ import annotations

from flask import Flask, request

from ..common.validators import parse_iso_date, require_id
from ..common.web import iso, json_body, ok, optional_date, optional_id, page_request, paginated, parse_enum, with_user
from ..container import Container
from ..core.context import RequestingUser
from ..core.enums import ViolationStatus
from .model import Violation, ViolationFilter


def violation_json(v: Violation) -> dict:
    return {
        "id": v.violation_id,
        "employeeId": v.employee_id,
        "branchId": v.branch_id,
        "shiftId": v.shift_id,
        "title": v.title,
        "description": v.description,
        "violationDate": iso(v.violation_date),
        "penaltyAmount": v.penalty_amount,
        "status": v.status.value,
        "createdBy": v.created_by,
        "notes": v.notes,
        "acknowledgedAt": iso(v.acknowledged_at),
        "createdAt": iso(v.created_at),
    }


def register(app: Flask, container: Container) -> None:
    service = container.violation_service

    @app.route("/api/violations", methods=["POST"], endpoint="create_violation")
    @with_user
    def create_violation(user: RequestingUser):
        body = json_body()
        violation = service.record_violation(
            user,
            employee_id=require_id(body.get("employeeId"), "employeeId"),
            title=body.get("title") or "",
            description=body.get("description") or "",
            violation_date=parse_iso_date(body.get("violationDate") or ""),
            penalty_amount=body.get("penaltyAmount", 0),
            shift_id=optional_id(body.get("shiftId"), "shiftId"),
            notes=body.get("notes"),
        )
        return ok(violation_json(violation), status=201, message="Violation recorded successfully")

    @app.route("/api/violations", methods=["GET"], endpoint="list_violations")
    @with_user
    def list_violations(user: RequestingUser):
        args = request.args
        flt = ViolationFilter(
            employee_id=optional_id(args.get("employeeId"), "employeeId"),
            branch_id=optional_id(args.get("branchId"), "branchId"),
            status=parse_enum(ViolationStatus, args.get("status"), "status"),
            start_date=optional_date(args.get("startDate")),
            end_date=optional_date(args.get("endDate")),
        )
        page = service.list_violations(user, flt=flt, page=page_request(args))
        return paginated(page, [violation_json(v) for v in page.items])

    @app.route("/api/violations/<int:violation_id>", methods=["GET"], endpoint="get_violation")
    @with_user
    def get_violation(user: RequestingUser, violation_id: int):
        return ok(violation_json(service.get_violation_by_id(violation_id, user)))

    @app.route("/api/violations/<int:violation_id>/acknowledge", methods=["PATCH"], endpoint="acknowledge_violation")
    @with_user
    def acknowledge_violation(user: RequestingUser, violation_id: int):
        violation = service.acknowledge_violation(violation_id, user)
        return ok(violation_json(violation), message="Violation acknowledged")
