"""
core/errors.py -- Typed failure taxonomy shared by every layer.

The core raises these; the owning surface decides the wire representation.
api/main.py turns any AppError into the JSON error envelope using the
class-level code and status_code. web/routes.py turns them into redirects
or error pages.

Anything that is NOT an AppError (storage faults, entropy-source failure)
is unexpected: it is logged for operators and never shown verbatim.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for expected, recoverable-at-the-boundary failures."""

    code: str = "error"
    status_code: int = 400

    def __init__(self, message: str, *, fields: list[dict] | None = None) -> None:
        super().__init__(message)
        self.message = message
        # Field-level messages: [{"field": "email", "message": "..."}]
        self.fields = fields or []


class InvalidInput(AppError):
    code = "invalid_input"
    status_code = 400


class NotFound(AppError):
    code = "not_found"
    status_code = 404


class Forbidden(AppError):
    """Authenticated, but not the owner of the target resource."""

    code = "forbidden"
    status_code = 403


class Conflict(AppError):
    """Duplicate email at signup."""

    code = "conflict"
    status_code = 409


class AuthError(AppError):
    """Base for credential failures (missing, invalid, expired)."""

    code = "unauthenticated"
    status_code = 401


class Unauthenticated(AuthError):
    code = "unauthenticated"
    status_code = 401


class SignatureInvalid(AuthError):
    code = "signature_invalid"
    status_code = 401


class TokenExpired(AuthError):
    code = "token_expired"
    status_code = 400


class TokenNotFound(AuthError):
    code = "token_not_found"
    status_code = 400
