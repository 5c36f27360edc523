# core/exceptions.py
"""
Application error taxonomy.

Services raise these instead of HTTPException so the same rules hold for
routes, scripts and tests. `core.exception_handlers` turns them into JSON
responses.
"""
from typing import Optional


class AppError(Exception):
    status_code = 500
    code = "APP_ERROR"

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(AppError):
    """Missing or malformed required input."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message, detail)
        self.field = field


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class PermissionDeniedError(AppError):
    status_code = 403
    code = "PERMISSION_DENIED"


class InvalidStateError(AppError):
    """Operation not legal in the entity's current lifecycle state."""

    status_code = 400
    code = "INVALID_STATE"


class AlreadyPaidError(InvalidStateError):
    # kept separate from InvalidStateError: a paid invoice must never be charged twice
    code = "ALREADY_PAID"


class InvalidSignatureError(AppError):
    status_code = 400
    code = "INVALID_SIGNATURE"


class UpstreamError(AppError):
    """Database, storage, payment gateway or mail provider call failed."""

    status_code = 500
    code = "UPSTREAM_ERROR"
