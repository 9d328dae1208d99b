from django.contrib import admin  # type: ignore

from .models import DiscountCoupon


@admin.register(DiscountCoupon)
class DiscountCouponAdmin(admin.ModelAdmin):
    list_display = ("code", "discount_type", "discount_value", "used_count", "usage_limit", "valid_until", "is_active")
    list_filter = ("discount_type", "applicable_to", "is_active")
    search_fields = ("code", "notes")
    readonly_fields = ("used_count", "created_by", "created_at", "updated_at")
