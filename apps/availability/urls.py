"""URL routing for the availability domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import (
    AvailabilityExceptionViewSet,
    AvailabilityRulesView,
    AvailabilitySettingsView,
    ServiceSlotsView,
)

router = DefaultRouter()
router.register(r"exceptions", AvailabilityExceptionViewSet, basename="availability-exception")

urlpatterns = [
    path("rules/", AvailabilityRulesView.as_view(), name="availability-rules"),
    path("settings/", AvailabilitySettingsView.as_view(), name="availability-settings"),
    path("slots/", ServiceSlotsView.as_view(), name="availability-slots"),
    path("", include(router.urls)),
]
