"""
Order board API for provider operators.

URL Structure:
    /api/v1/orders/                              GET   (?tab=)
    /api/v1/orders/{id}/accept/                  POST
    /api/v1/orders/{id}/reject/                  POST
    /api/v1/orders/{id}/advance/                 POST  {current_status}
    /api/v1/orders/{id}/confirm-cash-payment/    POST  {claimed_total}

All business rules live in OrderLifecycleService; views only parse input,
build the AccessContext and map failures to HTTP statuses.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from authentication.access import AccessContext
from authentication.permissions import IsProviderOperator
from core.views import failure_response

from orders.serializers import (
    AdvanceOrderSerializer,
    ConfirmCashPaymentSerializer,
    OrderBoardSerializer,
    OrderSerializer,
    OrderTabQuerySerializer,
    TransitionOutcomeSerializer,
)
from orders.services import OrderLifecycleService


class OrderViewSet(viewsets.ViewSet):
    """
    Provider order board.

    list:
        Orders of the caller's provider for one tab, with counts for all tabs.

    accept / reject:
        Decide on a pending order.

    advance:
        Move an order to the next fulfilment status.

    confirm_cash_payment:
        Confirm cash collected for a delivered order.
    """

    permission_classes = [IsProviderOperator]
    lookup_value_regex = "[0-9a-f-]{36}"

    def get_context(self) -> AccessContext:
        return AccessContext.from_user(self.request.user)

    @extend_schema(
        operation_id="list_provider_orders",
        summary="List provider orders",
        parameters=[OpenApiParameter("tab", str, description="Board tab")],
        responses=OrderBoardSerializer,
        tags=["Orders"],
    )
    def list(self, request):
        query = OrderTabQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        result = OrderLifecycleService.list_orders(
            self.get_context(), tab=query.validated_data["tab"]
        )
        if not result.success:
            return failure_response(result)

        board = result.data
        return Response(
            OrderBoardSerializer(
                {
                    "tab": board.tab,
                    "counts": board.counts,
                    "new_order_count": board.new_order_count,
                    "orders": board.orders,
                }
            ).data
        )

    @extend_schema(
        operation_id="accept_order",
        summary="Accept order",
        request=None,
        responses=OrderSerializer,
        tags=["Orders"],
    )
    @action(detail=True, methods=["post"])
    def accept(self, request, pk=None):
        result = OrderLifecycleService.accept_order(pk, self.get_context())
        if not result.success:
            return failure_response(result)
        return Response(OrderSerializer(result.data).data)

    @extend_schema(
        operation_id="reject_order",
        summary="Reject order",
        request=None,
        responses=OrderSerializer,
        tags=["Orders"],
    )
    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        result = OrderLifecycleService.reject_order(pk, self.get_context())
        if not result.success:
            return failure_response(result)
        return Response(OrderSerializer(result.data).data)

    @extend_schema(
        operation_id="advance_order",
        summary="Advance order status",
        request=AdvanceOrderSerializer,
        responses=TransitionOutcomeSerializer,
        tags=["Orders"],
    )
    @action(detail=True, methods=["post"])
    def advance(self, request, pk=None):
        serializer = AdvanceOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = OrderLifecycleService.advance_order_status(
            pk, serializer.validated_data["current_status"], self.get_context()
        )
        if not result.success:
            return failure_response(result)
        return Response(TransitionOutcomeSerializer(result.data).data)

    @extend_schema(
        operation_id="confirm_cash_payment",
        summary="Confirm cash payment",
        request=ConfirmCashPaymentSerializer,
        responses=OrderSerializer,
        tags=["Orders"],
    )
    @action(detail=True, methods=["post"], url_path="confirm-cash-payment")
    def confirm_cash_payment(self, request, pk=None):
        serializer = ConfirmCashPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = OrderLifecycleService.confirm_cash_payment(
            pk, serializer.validated_data["claimed_total"], self.get_context()
        )
        if not result.success:
            return failure_response(result)
        return Response(OrderSerializer(result.data).data)
