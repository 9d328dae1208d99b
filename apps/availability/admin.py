from django.contrib import admin  # type: ignore

from .models import AvailabilityException, AvailabilityRule, AvailabilitySettings


@admin.register(AvailabilityRule)
class AvailabilityRuleAdmin(admin.ModelAdmin):
    list_display = ("freelancer", "day_of_week", "start_time", "end_time", "is_active")
    list_filter = ("day_of_week", "is_active")


@admin.register(AvailabilityException)
class AvailabilityExceptionAdmin(admin.ModelAdmin):
    list_display = ("freelancer", "date", "start_time", "end_time", "exception_type")
    list_filter = ("exception_type",)


@admin.register(AvailabilitySettings)
class AvailabilitySettingsAdmin(admin.ModelAdmin):
    list_display = ("freelancer", "min_lead_time_hours", "max_bookings_per_day", "buffer_minutes")
