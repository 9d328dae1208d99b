from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import (
    AdminPayoutViewSet,
    EarningsView,
    PayoutAccountRefreshView,
    PayoutAccountView,
    PayoutHistoryViewSet,
    PayoutScheduleView,
    PayoutSettingsView,
)

router = DefaultRouter()
router.register(r"history", PayoutHistoryViewSet, basename="payout-history")
router.register(r"admin", AdminPayoutViewSet, basename="admin-payout")

urlpatterns = [
    path("account/", PayoutAccountView.as_view(), name="payout-account"),
    path("account/refresh/", PayoutAccountRefreshView.as_view(), name="payout-account-refresh"),
    path("schedule/", PayoutScheduleView.as_view(), name="payout-schedule"),
    path("earnings/", EarningsView.as_view(), name="payout-earnings"),
    path("admin/settings/", PayoutSettingsView.as_view(), name="payout-settings"),
    path("", include(router.urls)),
]
