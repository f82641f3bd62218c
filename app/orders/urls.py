"""
URL configuration for the order board API.

All URLs are prefixed with /api/v1/orders/ in the main URL configuration.
"""

from rest_framework.routers import SimpleRouter

from orders.views import OrderViewSet

router = SimpleRouter()
router.register(r"", OrderViewSet, basename="order")

app_name = "orders"

urlpatterns = router.urls
