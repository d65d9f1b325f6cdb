class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400
    category = "bad_request"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ConflictError(ValidationError):
    """Raised when an operation would break a uniqueness or capacity rule."""

    status_code = 409
    category = "conflict"


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    status_code = 404
    category = "not_found"


class AuthenticationError(DomainError):
    """Raised when the request carries no usable identity."""

    status_code = 401
    category = "unauthenticated"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403
    category = "forbidden"


class DuplicateRecordError(Exception):
    """Raised by repositories when the store rejects a duplicate unique key.

    Services translate this into the matching ``ConflictError``.
    """


class RecordInUseError(Exception):
    """Raised by repositories when a delete is blocked by dependent rows."""
