from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import DiscountCouponViewSet

router = DefaultRouter()
router.register(r"", DiscountCouponViewSet, basename="coupon")

urlpatterns = [
    path("", include(router.urls)),
]
