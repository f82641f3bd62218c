"""
URL configuration for the refund review API.

All URLs are prefixed with /api/v1/refunds/ in the main URL configuration.
"""

from rest_framework.routers import SimpleRouter

from refunds.views import RefundViewSet

router = SimpleRouter()
router.register(r"", RefundViewSet, basename="refund")

app_name = "refunds"

urlpatterns = router.urls
