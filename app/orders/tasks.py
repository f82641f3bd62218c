"""
Celery tasks for order settlement.

This module provides periodic tasks for:
- Auditing settlement holds and releasing stranded ones

Usage:
    from orders.tasks import audit_settlement_holds

    # Run the audit now (normally scheduled via celery-beat)
    audit_settlement_holds.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task
from django.conf import settings

from core.exceptions import LockAcquisitionError
from core.locks import DistributedLock

from orders.settlement import SettlementHoldCoordinator

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

AUDIT_LOCK_KEY = "settlement:hold-audit"
AUDIT_BATCH_SIZE = 100


# =============================================================================
# Settlement Audit Tasks
# =============================================================================


@shared_task
def audit_settlement_holds(batch_size: int = AUDIT_BATCH_SIZE) -> dict:
    """
    Release settlement holds left behind after their refund finished.

    A hold is stranded when the order is on hold but every refund on it is
    terminal. Each candidate is checked with invariant_violations and the
    release is one UPDATE guarded by on_hold and by the absence of an open
    refund, so a refund opened mid-run keeps its hold. The lock only keeps
    two beat workers from sweeping the same batch.

    Args:
        batch_size: Maximum number of orders released per run

    Returns:
        Dict with checked/released counts, or skipped=True if another
        worker holds the audit lock
    """
    lock = DistributedLock(
        AUDIT_LOCK_KEY,
        ttl=settings.SETTLEMENT_AUDIT_LOCK_TTL,
        blocking=False,
    )
    try:
        lock.acquire()
    except LockAcquisitionError:
        logger.info("Settlement hold audit already running, skipping")
        return {"skipped": True, "reason": "lock_held"}

    try:
        result = SettlementHoldCoordinator.heal_stranded_holds(batch_size=batch_size)
    finally:
        lock.release()

    if result["released"]:
        logger.warning(
            "Settlement hold audit released stranded holds",
            extra={
                "released": result["released"],
                "checked": result["checked"],
                "violations": len(result["violations"]),
            },
        )
    else:
        logger.info(
            "Settlement hold audit found nothing to release",
            extra={"checked": result["checked"]},
        )
    return result
