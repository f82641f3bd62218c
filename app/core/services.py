"""
Base service layer patterns for business logic encapsulation.

- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with logging, transactions and exception mapping

Services encapsulate business logic separate from views and models.
Views handle HTTP concerns, models handle data, services handle logic.

Pattern Comparison:
    - ServiceResult: Expected failures (validation, stale state, ownership)
    - Exceptions: Raised inside the service, converted at its boundary

Usage:
    from core.services import BaseService, ServiceResult

    class OrderLifecycleService(BaseService):
        @classmethod
        def accept_order(cls, order_id, context) -> ServiceResult[Order]:
            try:
                with cls.atomic():
                    order = ...
            except (BaseApplicationError, DatabaseError) as exc:
                return cls.handle_exception(exc, "accept_order")
            return ServiceResult.success(order)

    # In view
    result = OrderLifecycleService.accept_order(order_id, context)
    if result.success:
        return Response(OrderSerializer(result.data).data)
    return failure_response(result)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import DatabaseError, transaction

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

T = TypeVar("T")

# Error code reported for database/store failures
STORE_ERROR = "STORE_ERROR"


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures
        details: Extra failure context (expected/current state, ids)

    Usage:
        # Success case
        return ServiceResult.success(order)

        # Failure case
        return ServiceResult.failure("Order not found", "NOT_FOUND")

        # Check result
        result = OrderLifecycleService.accept_order(order_id, context)
        if result:
            order = result.data
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)
    details: dict[str, Any] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """Create a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
        details: dict[str, Any] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)
            details: Extra context for the caller

        Example:
            return ServiceResult.failure(
                "Rejection notes are required",
                error_code="VALIDATION_ERROR",
                errors={"notes": ["This field may not be blank."]},
            )
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
            details=details,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        Application errors keep their own message, code and details. Field
        errors found under details are surfaced as ``errors``.
        """
        if isinstance(exc, BaseApplicationError):
            details = dict(exc.details)
            field_errors = {
                key: value for key, value in details.items() if isinstance(value, list)
            }
            return cls(
                success=False,
                error=exc.message,
                error_code=error_code or exc.error_code,
                errors=field_errors or None,
                details=details or None,
            )
        return cls(
            success=False,
            error=str(exc),
            error_code=error_code or exc.__class__.__name__.upper(),
        )

    def to_response(self) -> dict[str, Any]:
        """Convert to API response format."""
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        if self.details:
            response["details"] = self.details
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Design Notes:
        - Use @classmethod (no instance state)
        - Use ServiceResult for expected failures
        - Store errors are reported as STORE_ERROR failures, never retried here
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get a logger named after the service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Example:
            with cls.atomic():
                refund_row_update()
                order_hold_release()
                # If the order update fails, the refund update rolls back too
        """
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.WARNING,
        extra: dict[str, Any] | None = None,
    ) -> ServiceResult:
        """
        Convert exception to ServiceResult with logging.

        Application errors are logged at ``log_level`` without a traceback.
        Database errors are logged at ERROR with the traceback and reported
        as STORE_ERROR. Anything else is a bug and propagates.

        Args:
            exc: The caught exception
            context: Operation name for the log line
            log_level: Logging level for application errors
            extra: Structured log fields (order_id, refund_id, ...)
        """
        logger = cls.get_logger()
        message = f"{context}: {exc}" if context else str(exc)

        if isinstance(exc, BaseApplicationError):
            logger.log(
                log_level,
                message,
                extra={**(extra or {}), "error_code": exc.error_code},
            )
            return ServiceResult.from_exception(exc)

        if isinstance(exc, DatabaseError):
            logger.error(
                message,
                exc_info=True,
                extra={**(extra or {}), "error_code": STORE_ERROR},
            )
            return ServiceResult.failure(
                "The operation could not be completed. Please try again.",
                error_code=STORE_ERROR,
            )

        raise exc
