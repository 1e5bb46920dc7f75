from __future__ import annotations

from datetime import datetime


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid."""


class AuthenticationError(DomainError):
    """Raised when the caller cannot be identified."""


class AuthorizationError(DomainError):
    """Raised when an identity lacks permission for an action (Forbidden)."""


class NotFoundError(DomainError):
    """Raised when a class, record or identity does not exist."""


class ConflictError(DomainError):
    """Raised when creating something that already exists."""


class AlreadyValidatedError(DomainError):
    """Attendance was already validated for this class, student and day.

    Carries the existing validation time so callers can display it.
    """

    def __init__(self, validated_at: datetime, message: str = "Attendance already validated for this student today"):
        self.validated_at = validated_at
        super().__init__(message)


class InvalidStateError(DomainError):
    """Raised on an attempted transition out of a terminal state."""


class GatewayError(DomainError):
    """Base for badge issuance failures. Never fatal to a committed validation."""


class GatewayUnavailableError(GatewayError):
    """Badge service unreachable, timed out, or not configured."""


class GatewayRejectedError(GatewayError):
    """Badge service answered but refused the request."""
