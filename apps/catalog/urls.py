"""URL routing for the catalog domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import ServicePackageViewSet, ServiceViewSet, StyleViewSet

router = DefaultRouter()
router.register(r"styles", StyleViewSet, basename="style")
router.register(r"services", ServiceViewSet, basename="service")
router.register(r"packages", ServicePackageViewSet, basename="package")

urlpatterns = [
    path("", include(router.urls)),
]
