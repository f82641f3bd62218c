"""
Refund review API for platform admins.

URL Structure:
    /api/v1/refunds/                        GET   (?search=&status=&governorate=)
    /api/v1/refunds/stats/                  GET   (?governorate=)
    /api/v1/refunds/governorates/           GET
    /api/v1/refunds/{id}/approve/           POST  {notes}
    /api/v1/refunds/{id}/reject/            POST  {notes}
    /api/v1/refunds/{id}/process/           POST  {amount, notes}

All business rules live in RefundWorkflowService; views only parse input,
build the AccessContext and map failures to HTTP statuses.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from authentication.access import AccessContext
from authentication.permissions import IsPlatformAdmin
from core.views import failure_response
from providers.geography import governorate_options

from refunds.serializers import (
    GovernorateOptionSerializer,
    RefundListQuerySerializer,
    RefundOutcomeSerializer,
    RefundProcessSerializer,
    RefundRejectSerializer,
    RefundReviewSerializer,
    RefundSerializer,
    RefundStatsSerializer,
)
from refunds.services import RefundFilter, RefundWorkflowService


class RefundViewSet(viewsets.ViewSet):
    """
    Admin refund review.

    list:
        Refunds in the admin's governorates, filtered by search and status.

    stats:
        Header counts over the admin's visible refunds.

    approve / reject / process:
        Review transitions. Reject needs notes; process takes an optional
        partial amount.
    """

    permission_classes = [IsPlatformAdmin]
    lookup_value_regex = "[0-9a-f-]{36}"

    def get_context(self) -> AccessContext:
        return AccessContext.from_user(self.request.user)

    def _outcome_response(self, result):
        if not result.success:
            return failure_response(result)
        return Response(RefundOutcomeSerializer(result.data).data)

    @extend_schema(
        operation_id="list_refunds",
        summary="List refunds",
        parameters=[
            OpenApiParameter("search", str, description="Order number, customer, provider or reason"),
            OpenApiParameter("status", str, description="Status, 'escalated' or 'all'"),
            OpenApiParameter("governorate", int, description="Governorate id"),
        ],
        responses=RefundSerializer(many=True),
        tags=["Refunds"],
    )
    def list(self, request):
        query = RefundListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        result = RefundWorkflowService.list_refunds(
            self.get_context(),
            RefundFilter(
                search=params["search"],
                status=params["status"],
                governorate_id=params["governorate"],
            ),
        )
        if not result.success:
            return failure_response(result)
        return Response(
            RefundSerializer(
                result.data, many=True, context={"locale": params["locale"]}
            ).data
        )

    @extend_schema(
        operation_id="refund_stats",
        summary="Refund summary counts",
        parameters=[OpenApiParameter("governorate", int, description="Governorate id")],
        responses=RefundStatsSerializer,
        tags=["Refunds"],
    )
    @action(detail=False, methods=["get"])
    def stats(self, request):
        query = RefundListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        result = RefundWorkflowService.refund_stats(
            self.get_context(),
            RefundFilter(governorate_id=query.validated_data["governorate"]),
        )
        if not result.success:
            return failure_response(result)
        return Response(RefundStatsSerializer(result.data).data)

    @extend_schema(
        operation_id="refund_governorates",
        summary="Governorate filter options",
        responses=GovernorateOptionSerializer(many=True),
        tags=["Refunds"],
    )
    @action(detail=False, methods=["get"])
    def governorates(self, request):
        locale = request.query_params.get("locale", "ar")
        options = governorate_options(self.get_context(), locale=locale)
        return Response(GovernorateOptionSerializer(options, many=True).data)

    @extend_schema(
        operation_id="approve_refund",
        summary="Approve refund",
        request=RefundReviewSerializer,
        responses=RefundOutcomeSerializer,
        tags=["Refunds"],
    )
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        serializer = RefundReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RefundWorkflowService.approve_refund(
            pk, self.get_context(), notes=serializer.validated_data.get("notes")
        )
        return self._outcome_response(result)

    @extend_schema(
        operation_id="reject_refund",
        summary="Reject refund",
        request=RefundRejectSerializer,
        responses=RefundOutcomeSerializer,
        tags=["Refunds"],
    )
    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        serializer = RefundRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RefundWorkflowService.reject_refund(
            pk, self.get_context(), notes=serializer.validated_data.get("notes")
        )
        return self._outcome_response(result)

    @extend_schema(
        operation_id="process_refund",
        summary="Process refund",
        request=RefundProcessSerializer,
        responses=RefundOutcomeSerializer,
        tags=["Refunds"],
    )
    @action(detail=True, methods=["post"])
    def process(self, request, pk=None):
        serializer = RefundProcessSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RefundWorkflowService.process_refund(
            pk,
            self.get_context(),
            amount_override=serializer.validated_data.get("amount"),
            notes=serializer.validated_data.get("notes"),
        )
        return self._outcome_response(result)
