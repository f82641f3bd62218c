"""
URL configuration for the fulfillment reconciliation service.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/orders/                - Provider order board
        {id}/accept/               - Accept a pending order
        {id}/reject/               - Reject a pending order
        {id}/advance/              - Move to the next fulfilment status
        {id}/confirm-cash-payment/ - Confirm cash collected on delivery
    /api/v1/refunds/               - Admin refund review
        stats/                     - Header counts
        governorates/              - Governorate filter options
        {id}/approve/              - Approve a pending refund
        {id}/reject/               - Reject a pending refund (notes required)
        {id}/process/              - Process an approved refund
    ws/provider/orders/            - Realtime order board (WebSocket, see asgi.py)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    path("orders/", include("orders.urls")),
    path("refunds/", include("refunds.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Fulfillment Admin"
admin.site.site_title = "Fulfillment Admin"
admin.site.index_title = "Orders, refunds and providers"
