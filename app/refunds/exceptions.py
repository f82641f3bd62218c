"""
Refund-specific exceptions.

Exception Hierarchy:
    ValidationError
    ├── RejectionNotesRequiredError - Reject without notes
    └── RefundAmountError - Processed amount out of range
"""

from __future__ import annotations

from core.exceptions import ValidationError


class RejectionNotesRequiredError(ValidationError):
    """Raised before any store call when reject is attempted without notes."""

    default_error_code = "NOTES_REQUIRED"


class RefundAmountError(ValidationError):
    """Raised when a processed amount is not positive or exceeds the request."""

    default_error_code = "INVALID_REFUND_AMOUNT"
