# booking/urls.py
#
# Purpose:
# - Expose the booking app's REST API via the DRF router.
# - Cron-only endpoints live outside the router (no model behind them).
#
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import BookingHoldViewSet, BookingViewSet, ResourceGroupViewSet, ResourceViewSet
from .views_cron import ExpireHoldsView

router = DefaultRouter()
router.register(r"resources", ResourceViewSet, basename="resource")
router.register(r"resource-groups", ResourceGroupViewSet, basename="resource-group")
router.register(r"bookings", BookingViewSet, basename="booking")
router.register(r"holds", BookingHoldViewSet, basename="hold")

urlpatterns = [
    path("", include(router.urls)),
    path("cron/expire-holds/", ExpireHoldsView.as_view(), name="cron-expire-holds"),
]
