"""
Order services.

Usage:
    from orders.services import OrderLifecycleService
"""

from .lifecycle_service import OrderBoard, OrderLifecycleService, TransitionOutcome

__all__ = [
    "OrderBoard",
    "OrderLifecycleService",
    "TransitionOutcome",
]
