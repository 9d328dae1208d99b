"""Serializers for the admin moderation API."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.users.models import CustomUser


class AdminUserListSerializer(serializers.ModelSerializer):
    """Row in the admin user list."""

    role_display = serializers.CharField(source="get_role_display", read_only=True)

    class Meta:
        model = CustomUser
        fields = [
            "id",
            "email",
            "username",
            "first_name",
            "last_name",
            "phone",
            "role",
            "role_display",
            "status",
            "is_active",
            "is_verified",
            "is_verified_freelancer",
            "last_activity_at",
            "created_at",
        ]
        read_only_fields = fields


class AdminUserDetailSerializer(AdminUserListSerializer):
    """Detailed view of a single account, with activity counters."""

    bookings_as_client = serializers.SerializerMethodField()
    bookings_as_freelancer = serializers.SerializerMethodField()
    active_services = serializers.SerializerMethodField()

    class Meta(AdminUserListSerializer.Meta):
        fields = AdminUserListSerializer.Meta.fields + [
            "suspended_at",
            "suspension_reason",
            "failed_login_attempts",
            "locked_until",
            "bookings_as_client",
            "bookings_as_freelancer",
            "active_services",
        ]
        read_only_fields = fields

    def get_bookings_as_client(self, obj: CustomUser) -> int:
        return obj.client_bookings.count()

    def get_bookings_as_freelancer(self, obj: CustomUser) -> int:
        return obj.freelancer_bookings.count()

    def get_active_services(self, obj: CustomUser) -> int:
        return obj.services.filter(is_active=True).count()


class SuspendSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)
