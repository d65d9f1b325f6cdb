from __future__ import annotations

from flask import Flask, request

from ..common.validators import require_id
from ..common.web import iso, json_body, ok, optional_id, page_request, paginated, parse_enum, with_user
from ..container import Container
from ..core.constants import DEFAULT_OVERTIME_RATE
from ..core.context import RequestingUser
from ..core.enums import PayrollStatus
from ..core.exceptions import ValidationError
from .model import Payroll, PayrollFilter


def payroll_json(p: Payroll) -> dict:
    f = p.figures
    return {
        "id": p.payroll_id,
        "employeeId": p.employee_id,
        "branchId": p.branch_id,
        "month": p.month,
        "year": p.year,
        "baseSalary": f.base_salary,
        "totalWorkHours": f.total_work_hours,
        "overtimeHours": f.overtime_hours,
        "overtimeRate": f.overtime_rate,
        "overtimePay": f.overtime_pay,
        "bonuses": f.bonuses,
        "deductions": f.deductions.to_dict(),
        "grossSalary": f.gross_salary,
        "netSalary": f.net_salary,
        "status": p.status.value,
        "revision": p.revision,
        "paidAt": iso(p.paid_at),
        "paidBy": p.paid_by,
        "notes": p.notes,
        "createdAt": iso(p.created_at),
        "updatedAt": iso(p.updated_at),
    }


def register(app: Flask, container: Container) -> None:
    service = container.payroll_service

    @app.route("/api/payroll/calculate", methods=["POST"], endpoint="calculate_payroll")
    @with_user
    def calculate_payroll(user: RequestingUser):
        body = json_body()
        payroll = service.calculate_payroll(
            user,
            employee_id=require_id(body.get("employeeId"), "employeeId"),
            month=body.get("month"),
            year=body.get("year"),
            base_salary=body.get("baseSalary"),
            overtime_rate=body.get("overtimeRate", DEFAULT_OVERTIME_RATE),
            bonuses=body.get("bonuses", 0),
            other_deductions=body.get("otherDeductions", 0),
            notes=body.get("notes"),
        )
        return ok(payroll_json(payroll), status=201, message="Payroll calculated successfully")

    @app.route("/api/payroll", methods=["GET"], endpoint="list_payrolls")
    @with_user
    def list_payrolls(user: RequestingUser):
        args = request.args
        flt = PayrollFilter(
            employee_id=optional_id(args.get("employeeId"), "employeeId"),
            branch_id=optional_id(args.get("branchId"), "branchId"),
            month=int(args["month"]) if args.get("month", "").isdigit() else None,
            year=int(args["year"]) if args.get("year", "").isdigit() else None,
            status=parse_enum(PayrollStatus, args.get("status"), "status"),
        )
        page = service.get_payrolls(user, flt=flt, page=page_request(args))
        return paginated(page, [payroll_json(p) for p in page.items])

    @app.route("/api/payroll/<int:payroll_id>", methods=["GET"], endpoint="get_payroll")
    @with_user
    def get_payroll(user: RequestingUser, payroll_id: int):
        return ok(payroll_json(service.get_payroll_by_id(payroll_id, user)))

    @app.route("/api/payroll/<int:payroll_id>/status", methods=["PATCH"], endpoint="update_payroll_status")
    @with_user
    def update_payroll_status(user: RequestingUser, payroll_id: int):
        body = json_body()
        status = parse_enum(PayrollStatus, body.get("status"), "status")
        if status is None:
            raise ValidationError("status is required")
        payroll = service.update_payroll_status(payroll_id, user, status=status, notes=body.get("notes"))
        return ok(payroll_json(payroll), message="Payroll status updated successfully")

    @app.route("/api/payroll/<int:payroll_id>/recalculate", methods=["POST"], endpoint="recalculate_payroll")
    @with_user
    def recalculate_payroll(user: RequestingUser, payroll_id: int):
        return ok(payroll_json(service.recalculate_payroll(payroll_id, user)), message="Payroll recalculated successfully")

    @app.route("/api/payroll/<int:payroll_id>/pay", methods=["POST"], endpoint="pay_payroll")
    @with_user
    def pay_payroll(user: RequestingUser, payroll_id: int):
        return ok(payroll_json(service.process_payment(payroll_id, user)), message="Payment processed successfully")

    @app.route("/api/payroll/<int:payroll_id>", methods=["DELETE"], endpoint="delete_payroll")
    @with_user
    def delete_payroll(user: RequestingUser, payroll_id: int):
        service.delete_payroll(payroll_id, user)
        return ok(None, message="Payroll deleted successfully")
