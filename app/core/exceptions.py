"""
Application exception hierarchy.

Every domain error carries a human-readable message, a machine-readable
error code and optional details. Services turn these into
ServiceResult failures; views turn the error code into an HTTP status.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input rejected before any write
    ├── NotFoundError - Record does not exist
    ├── PermissionDeniedError - Caller may not act on the record
    ├── ConflictError - Record state does not allow the operation
    │   ├── StaleStateError - Conditional write matched zero rows
    │   ├── InvalidStateTransitionError - No such edge in the state machine
    │   └── LockAcquisitionError - Distributed lock held elsewhere

Usage:
    from core.exceptions import ValidationError

    if not notes.strip():
        raise ValidationError(
            "Rejection notes are required",
            error_code="NOTES_REQUIRED",
            details={"notes": ["This field may not be blank."]},
        )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, current state, ...)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Validation always happens before the first store call, so raising this
    guarantees nothing was written.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """Raised when a requested record does not exist."""

    default_error_code: str = "NOT_FOUND"


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the acting user may not touch a record.

    Used for ownership mismatches (a provider acting on another provider's
    order) and for admins acting outside their assigned governorates.
    """

    default_error_code: str = "PERMISSION_DENIED"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with the record's current state.

    HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = "CONFLICT"


class StaleStateError(ConflictError):
    """
    Raised when a conditional write affects zero rows.

    The row changed between the read and the write: another session already
    moved it out of the expected state. The caller should reload and decide
    again rather than retry blindly.

    Example:
        raise StaleStateError(
            "Order is no longer pending",
            details={"expected": "pending", "current": "accepted"},
        )
    """

    default_error_code: str = "STALE_STATE"


class InvalidStateTransitionError(ConflictError):
    """Raised when the state machine has no edge for the requested action."""

    default_error_code: str = "INVALID_STATE_TRANSITION"


class LockAcquisitionError(ConflictError):
    """Raised when a distributed lock is held by another process."""

    default_error_code: str = "LOCK_ACQUISITION_FAILED"

