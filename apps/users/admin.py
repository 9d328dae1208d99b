"""Admin registrations for the users domain."""

from __future__ import annotations

from django.contrib import admin  # type: ignore
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .models import CustomUser, FreelancerProfile, PasswordResetToken


class FreelancerProfileInline(admin.StackedInline):
    model = FreelancerProfile
    can_delete = False
    readonly_fields = ("average_rating", "total_reviews")


@admin.register(CustomUser)
class CustomUserAdmin(BaseUserAdmin):
    inlines = [FreelancerProfileInline]
    fieldsets = (
        (None, {"fields": ("email", "password")}),
        (_("Personal info"), {"fields": ("username", "first_name", "last_name", "phone")}),
        (_("Role and moderation"), {"fields": ("role", "status", "suspended_at", "suspension_reason")}),
        (_("Verification"), {"fields": ("is_verified", "is_verified_freelancer")}),
        (_("Security"), {"fields": ("failed_login_attempts", "locked_until")}),
        (
            _("Permissions"),
            {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        (_("Important dates"), {"fields": ("last_login", "date_joined", "created_at", "updated_at")}),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "password1", "password2", "phone", "role", "is_staff", "is_superuser"),
            },
        ),
    )
    list_display = ("email", "role", "status", "is_verified", "is_verified_freelancer", "is_locked")
    list_filter = ("role", "status", "is_verified", "is_verified_freelancer", "is_staff")
    search_fields = ("email", "phone", "first_name", "last_name")
    ordering = ("email",)
    readonly_fields = ("created_at", "updated_at", "date_joined")


@admin.register(PasswordResetToken)
class PasswordResetTokenAdmin(admin.ModelAdmin):
    list_display = ("user", "expires_at", "attempts_left", "is_used", "created_at")
    list_filter = ("is_used",)
    search_fields = ("user__email", "user__phone")
