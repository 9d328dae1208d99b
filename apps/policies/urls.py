from django.urls import path  # type: ignore

from .views import CancellationPolicyView, CancellationStatsView, ReliabilityConfigView

urlpatterns = [
    path("cancellation/", CancellationPolicyView.as_view(), name="cancellation-policies"),
    path("reliability/config/", ReliabilityConfigView.as_view(), name="reliability-config"),
    path("reliability/me/", CancellationStatsView.as_view(), name="reliability-stats"),
]
