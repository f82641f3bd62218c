"""
Refund services.

Usage:
    from refunds.services import RefundFilter, RefundWorkflowService
"""

from .workflow_service import RefundFilter, RefundOutcome, RefundWorkflowService

__all__ = [
    "RefundFilter",
    "RefundOutcome",
    "RefundWorkflowService",
]
