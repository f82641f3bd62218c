"""
WebSocket URL routing for the order board.

URL Patterns:
    ws/provider/orders/ - Live order board of the caller's provider

Authentication:
    JWT token as query parameter: ?token=<jwt_access_token>
"""

from django.urls import path

from orders.realtime import consumers

websocket_urlpatterns = [
    path(
        "ws/provider/orders/",
        consumers.ProviderOrdersConsumer.as_asgi(),
    ),
]
