"""Election error kinds.

Every guard failure raises a subclass of ElectionError. The error carries
a machine-readable kind (surfaced verbatim to callers) and a
human-readable reason. The service layer converts raised errors into
failed results; nothing below it catches them.
"""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    """Tagged error kinds surfaced to callers."""
    UNAUTHORIZED = "Unauthorized"
    INVALID_STATE = "InvalidState"
    ALREADY_REGISTERED = "AlreadyRegistered"
    NOT_FOUND = "NotFound"
    NOT_VERIFIED = "NotVerified"
    ALREADY_VOTED = "AlreadyVoted"
    SELF_DELEGATION = "SelfDelegation"
    DELEGATE_NOT_VERIFIED = "DelegateNotVerified"
    DELEGATION_CYCLE = "DelegationCycle"
    VALIDATION_ERROR = "ValidationError"
    TRANSPORT_ERROR = "TransportError"


class ElectionError(Exception):
    """Base class for all election errors."""
    kind: ErrorKind

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.reason}"


class UnauthorizedError(ElectionError):
    """Raised when a caller is not the admin."""
    kind = ErrorKind.UNAUTHORIZED


class InvalidStateError(ElectionError):
    """Raised when an operation is attempted in the wrong phase."""
    kind = ErrorKind.INVALID_STATE


class AlreadyRegisteredError(ElectionError):
    kind = ErrorKind.ALREADY_REGISTERED


class NotFoundError(ElectionError):
    """Raised for an unknown voter or candidate."""
    kind = ErrorKind.NOT_FOUND


class NotVerifiedError(ElectionError):
    kind = ErrorKind.NOT_VERIFIED


class AlreadyVotedError(ElectionError):
    """Raised when a ballot has already been cast or handed over."""
    kind = ErrorKind.ALREADY_VOTED


class SelfDelegationError(ElectionError):
    kind = ErrorKind.SELF_DELEGATION


class DelegateNotVerifiedError(ElectionError):
    kind = ErrorKind.DELEGATE_NOT_VERIFIED


class DelegationCycleError(ElectionError):
    kind = ErrorKind.DELEGATION_CYCLE


class ValidationError(ElectionError):
    """Raised for an empty or malformed field."""
    kind = ErrorKind.VALIDATION_ERROR


class TransportError(ElectionError):
    """Raised when the ledger or identity provider fails.

    Kept distinct from domain errors so callers can tell a rejected
    command from a substrate failure.
    """
    kind = ErrorKind.TRANSPORT_ERROR


def require_text(value: str, label: str) -> str:
    """Return value unchanged, raising ValidationError if it is blank."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required")
    return value


def canonical_identity(identity: str, label: str = "Address") -> str:
    """Strip an identity for comparison. Blank identities are rejected."""
    return require_text(identity, label).strip()
