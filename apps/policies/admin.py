from django.contrib import admin  # type: ignore

from .models import CancellationPolicy, FreelancerCancellation, ReliabilityConfig


@admin.register(CancellationPolicy)
class CancellationPolicyAdmin(admin.ModelAdmin):
    list_display = ("policy_type", "hours_threshold", "refund_percentage", "updated_at")


@admin.register(ReliabilityConfig)
class ReliabilityConfigAdmin(admin.ModelAdmin):
    list_display = ("warning_threshold", "suspension_threshold", "time_window_days", "updated_at")

    def has_add_permission(self, request):  # type: ignore
        return not ReliabilityConfig.objects.exists()


@admin.register(FreelancerCancellation)
class FreelancerCancellationAdmin(admin.ModelAdmin):
    list_display = ("freelancer", "booking", "hours_before_service", "is_last_minute", "cancelled_at")
    list_filter = ("is_last_minute",)
    search_fields = ("freelancer__email",)
