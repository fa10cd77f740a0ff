"""
Error taxonomy shared by the API, the services and the client.

Every failure a caller can act on is a ``RideshareError``.  The API layer
maps each class onto one HTTP status; the client maps the status back.
"""

from __future__ import annotations

from typing import Iterable, Optional


class RideshareError(Exception):
    """Base class for all domain failures."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors) if errors else []


class ValidationError(RideshareError):
    """Malformed input; ``errors`` lists every violated constraint."""

    status_code = 400

    @classmethod
    def from_errors(cls, errors: list[str]) -> "ValidationError":
        return cls(" | ".join(errors), errors)


class AuthError(RideshareError):
    """Identity could not be established (bad credentials, bad token)."""

    status_code = 401


class AuthorizationError(RideshareError):
    """Identity is known but not allowed to perform the operation."""

    status_code = 403


class NotFoundError(RideshareError):
    status_code = 404


class ConflictError(RideshareError):
    """A state precondition does not hold (seats exhausted, duplicate rating...)."""

    status_code = 409


class TransportError(RideshareError):
    """The API could not be reached."""

    status_code = 503


class RequestTimeoutError(TransportError):
    status_code = 504


STATUS_TO_ERROR: dict[int, type[RideshareError]] = {
    400: ValidationError,
    401: AuthError,
    403: AuthorizationError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
}
