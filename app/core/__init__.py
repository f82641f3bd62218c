"""
Core Application - Shared Infrastructure

Generic building blocks used by the domain apps (orders, refunds, providers).
Nothing in here knows about orders or refunds.

Models (import from core.models / core.model_mixins):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError and its subclasses, each with a default error code

Concurrency (import from core.transitions / core.locks):
    - persist_transition: django-fsm transition + conditional UPDATE
    - conditional_update: predicate-guarded UPDATE returning the row count
    - DistributedLock: Redis lock for singleton background jobs

Note:
    Models, transitions and locks depend on the app registry (or Redis) and are
    not imported here. Import them from their modules.
"""

from .exceptions import (
    BaseApplicationError,
    ConflictError,
    InvalidStateTransitionError,
    LockAcquisitionError,
    NotFoundError,
    PermissionDeniedError,
    StaleStateError,
    ValidationError,
)
from .services import BaseService, ServiceResult

__all__ = [
    "BaseService",
    "ServiceResult",
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    "ConflictError",
    "StaleStateError",
    "InvalidStateTransitionError",
    "LockAcquisitionError",
]
