"""
Core views and view helpers.

- health_check: Liveness/readiness endpoint for orchestration
- failure_response: Turn a failed ServiceResult into a DRF Response
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse
from rest_framework import status
from rest_framework.response import Response

from core.services import STORE_ERROR

if TYPE_CHECKING:
    from core.services import ServiceResult

logger = logging.getLogger(__name__)

# Error code -> HTTP status; codes not listed map by suffix, then to 400
ERROR_CODE_STATUS = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "CASH_TOTAL_MISMATCH": status.HTTP_400_BAD_REQUEST,
    "PERMISSION_DENIED": status.HTTP_403_FORBIDDEN,
    "ORDER_NOT_OWNED": status.HTTP_403_FORBIDDEN,
    "PROVIDER_REQUIRED": status.HTTP_403_FORBIDDEN,
    "ADMIN_REQUIRED": status.HTTP_403_FORBIDDEN,
    "REGION_ACCESS_DENIED": status.HTTP_403_FORBIDDEN,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "STALE_STATE": status.HTTP_409_CONFLICT,
    "INVALID_STATE_TRANSITION": status.HTTP_409_CONFLICT,
    "PAYMENT_NOT_CONFIRMABLE": status.HTTP_409_CONFLICT,
    STORE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for_error_code(error_code: str | None) -> int:
    if error_code in ERROR_CODE_STATUS:
        return ERROR_CODE_STATUS[error_code]
    if error_code and error_code.endswith("_NOT_FOUND"):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_400_BAD_REQUEST


def failure_response(result: ServiceResult) -> Response:
    """
    Build the error response for a failed service call.

    Body:
        {"success": false, "error": "...", "error_code": "...", "errors": {...}, "details": {...}}
    """
    return Response(result.to_response(), status=status_for_error_code(result.error_code))


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    HTTP Status Codes:
        200: Database reachable (cache failures only degrade)
        503: Database unreachable

    Example Response:
        {"status": "healthy", "database": "connected", "cache": "connected"}
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.error("Health check: database unreachable", exc_info=True)
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    cache.set("health_check", "ok", timeout=1)
    health_status["cache"] = (
        "connected" if cache.get("health_check") == "ok" else "disconnected"
    )

    return JsonResponse(health_status, status=200 if is_healthy else 503)
