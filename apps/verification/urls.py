from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import AdminVerificationViewSet, FreelancerVerificationView

router = DefaultRouter()
router.register(r"admin", AdminVerificationViewSet, basename="admin-verification")

urlpatterns = [
    path("", FreelancerVerificationView.as_view(), name="verification"),
    path("", include(router.urls)),
]
