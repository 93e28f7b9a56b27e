"""
Domain exceptions raised by the service layer.

Routes never build HTTP errors for these themselves; the handlers registered in
``candor.main`` translate them into JSON responses.
"""

from __future__ import annotations


class CandorError(Exception):
    status_code = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(CandorError):
    """Raised when a requested row does not exist."""

    status_code = 404


class PermissionDeniedError(CandorError):
    """Raised when the caller's role does not allow the operation."""

    status_code = 403


class ValidationFailedError(CandorError):
    """Raised when input passes schema validation but breaks a data rule."""

    status_code = 422


class AuthenticationError(CandorError):
    status_code = 401


class ConflictError(CandorError):
    status_code = 409
