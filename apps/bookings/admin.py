"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin  # type: ignore

from .models import Booking, BookingAuditLog, RescheduleRequest


class BookingAuditLogInline(admin.TabularInline):
    model = BookingAuditLog
    extra = 0
    readonly_fields = ("action", "user", "previous_status", "new_status", "metadata", "created_at")
    can_delete = False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "service",
        "client",
        "freelancer",
        "status",
        "payment_status",
        "start_datetime",
        "total_price_pence",
        "created_at",
    )
    list_filter = ("status", "payment_status", "location_type", "start_datetime")
    search_fields = ("booking_code", "service__name", "client__email", "freelancer__email")
    readonly_fields = (
        "booking_code",
        "created_at",
        "updated_at",
        "price_base_pence",
        "price_materials_pence",
        "price_travel_pence",
        "platform_fee_pence",
        "total_price_pence",
    )
    inlines = [BookingAuditLogInline]


@admin.register(RescheduleRequest)
class RescheduleRequestAdmin(admin.ModelAdmin):
    list_display = ("booking", "requested_by", "new_start_datetime", "status", "created_at")
    list_filter = ("status",)
