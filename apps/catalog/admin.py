"""Admin registrations for the catalog domain."""

from __future__ import annotations

from django.contrib import admin  # type: ignore
from mptt.admin import MPTTModelAdmin  # type: ignore

from .models import Service, ServicePackage, ServicePackageItem, Style


@admin.register(Style)
class StyleAdmin(MPTTModelAdmin):
    list_display = ("name", "slug", "is_active")
    prepopulated_fields = {"slug": ("name",)}
    search_fields = ("name",)


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("name", "freelancer", "style", "base_price_pence", "duration_minutes", "is_active")
    list_filter = ("is_active", "deactivated_by_admin", "materials_policy")
    search_fields = ("name", "freelancer__email")
    raw_id_fields = ("freelancer",)


class ServicePackageItemInline(admin.TabularInline):
    model = ServicePackageItem
    extra = 0


@admin.register(ServicePackage)
class ServicePackageAdmin(admin.ModelAdmin):
    list_display = ("name", "freelancer", "discount_percent", "discount_amount_pence", "is_active")
    list_filter = ("is_active",)
    inlines = [ServicePackageItemInline]
