"""Helpers shared by the JSON controllers: requesting user, paging, envelopes, errors."""

from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from functools import wraps
from typing import Any, Callable, Mapping, Optional, TypeVar

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.context import RequestingUser
from ..core.enums import Role, SortOrder
from ..core.exceptions import AuthenticationError, DomainError, ValidationError
from ..core.pagination import Page, PageRequest
from .validators import parse_iso_date, require_id

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


def current_user() -> RequestingUser:
    """Requesting user carried in the Flask session (issued by the auth layer)."""

    if "user_id" not in session:
        raise AuthenticationError("Authentication required")
    try:
        role = Role(session.get("role"))
    except ValueError:
        raise AuthenticationError("Invalid session role")
    branch_id = session.get("branch_id")
    return RequestingUser(
        user_id=int(session["user_id"]),
        role=role,
        branch_id=int(branch_id) if branch_id is not None else None,
    )


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def ok(data: Any = None, *, status: int = 200, message: Optional[str] = None):
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return jsonify(body), status


def paginated(page: Page, items: list):
    return jsonify({"success": True, "data": items, "pagination": page.pagination()}), 200


def page_request(args: Mapping[str, str], *, default_sort: str = "date") -> PageRequest:
    try:
        page = int(args.get("page", 1))
        limit = int(args.get("limit", 10))
    except (TypeError, ValueError):
        raise ValidationError("page and limit must be integers")
    return PageRequest(
        page=page,
        limit=limit,
        sort_by=args.get("sortBy") or default_sort,
        order=parse_enum(SortOrder, args.get("order"), "order") or SortOrder.DESC,
    )


def parse_enum(enum_cls: type[E], value: Optional[str], field_name: str) -> Optional[E]:
    if value in (None, ""):
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field_name}. Allowed: {allowed}")


def optional_id(value: Any, field_name: str) -> Optional[int]:
    if value in (None, ""):
        return None
    return require_id(value, field_name)


def optional_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return parse_iso_date(value)


def iso(value: Optional[date | datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return jsonify({"success": False, "error": e.category, "message": str(e)}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"success": False, "error": e.name, "message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "error": "internal_error", "message": "Internal server error"}), 500


def with_user(view: Callable) -> Callable:
    """Pass the requesting user as the first argument of a view."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        return view(current_user(), *args, **kwargs)

    return wrapper
