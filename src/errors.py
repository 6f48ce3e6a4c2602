"""Application error taxonomy.

Every error raised by the service and API layers is an :class:`AppError`;
``src.api.main`` turns them into the ``{"success": false, ...}`` envelope.
"""
from __future__ import annotations

import uuid


class AppError(Exception):
    """Base class for errors with a stable code and HTTP status."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, details: list[dict] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.code, "message": self.message}
        if self.details:
            body["errors"] = self.details
        return body


class ValidationError(AppError):
    """Malformed or missing fields. ``details`` lists ``{field, message}``."""

    status_code = 400
    code = "validation_error"


class CastError(AppError):
    """An identifier that is not in the expected format."""

    status_code = 400
    code = "cast_error"


class UnauthorizedError(AppError):
    status_code = 401
    code = "unauthorized"


class NotFoundError(AppError):
    """Missing, or outside the caller's scope. The two are indistinguishable."""

    status_code = 404
    code = "not_found"


class ConflictError(AppError):
    status_code = 409
    code = "conflict"


def parse_id(value: str, label: str = "id") -> str:
    """Return ``value`` normalised as a UUID string or raise :class:`CastError`."""
    try:
        return str(uuid.UUID(value))
    except (ValueError, TypeError, AttributeError):
        raise CastError(f"Invalid {label}: {value!r}") from None
