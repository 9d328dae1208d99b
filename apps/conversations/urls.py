from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import ConversationViewSet

router = DefaultRouter()
router.register(r"", ConversationViewSet, basename="conversation")

urlpatterns = [
    path("", include(router.urls)),
]
