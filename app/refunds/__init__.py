"""
Refunds application.

Admin review of refund requests against orders: approve, reject, process,
plus the filtered, region-scoped refund list and its summary counts.

Key components:
    - Refund model: Refund request with review/processing audit trail
    - RefundWorkflowService: approve, reject, process, list, stats

Usage:
    from refunds.services import RefundWorkflowService
"""
