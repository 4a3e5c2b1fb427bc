"""
Typed failures raised by services.

Services never build HTTP responses; routers let these propagate and the
handlers registered in app.py translate ``status_code``/``details`` into the
JSON envelope.
"""

from __future__ import annotations

from typing import Any, Optional


class AppError(Exception):
    """Base class for every failure a caller is expected to handle."""

    status_code = 400

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    """Duplicate name, depth limit, cycles, children present, disabled parent."""

    status_code = 400


class InvalidInputError(AppError):
    """Field-level validation failure; ``errors`` maps field -> messages."""

    status_code = 422

    def __init__(self, message: str, errors: Optional[dict[str, list[str]]] = None):
        super().__init__(message, details=errors)
        self.errors = errors or {}


class RateLimitedError(AppError):
    status_code = 429

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message, details={"retry_after": retry_after} if retry_after else None)
        self.retry_after = retry_after


class AuthExpiredError(AppError):
    status_code = 401


class InvalidCredentialError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class UnavailableError(AppError):
    """A backing store call failed; multi-row writes have been rolled back."""

    status_code = 503
