"""
core/errors.py -- Application error taxonomy.

Every error the application raises on purpose derives from AppError and
carries an ErrorKind. A single exception handler in api/main.py turns the
kind into an HTTP status, so route code never picks status codes for
domain failures.

Layer rule: core/ is the kernel. No imports from api/, auth/, or catalog/.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of error categories, each bound to one HTTP status."""

    input = "input"
    auth = "auth"
    not_found = "not_found"
    ownership = "ownership"
    config = "config"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


# ownership answers 200: a record outside the caller's ownership set is a
# soft "nope", not a 403/404.
_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.input: 400,
    ErrorKind.auth: 401,
    ErrorKind.not_found: 404,
    ErrorKind.ownership: 200,
    ErrorKind.config: 500,
}


class AppError(Exception):
    """Base class for errors rendered by the shared boundary handler."""

    kind: ErrorKind = ErrorKind.input
    default_message: str = "invalid input"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InputError(AppError):
    """Duplicate username, oversized password, or other rejected input."""

    kind = ErrorKind.input
    default_message = "invalid input"


class AuthError(AppError):
    """Missing, malformed, invalid or expired credentials."""

    kind = ErrorKind.auth
    default_message = "not authorized"


class NotFoundError(AppError):
    kind = ErrorKind.not_found
    default_message = "nope"


class OwnershipNotFound(AppError):
    """Target record is not in the caller's ownership set."""

    kind = ErrorKind.ownership
    default_message = "nope"


class ConfigError(AppError):
    """Missing or unusable process configuration. Fatal at startup."""

    kind = ErrorKind.config
    default_message = "server misconfigured"
