"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.catalog.models import Service

from .models import Booking, BookingAuditLog, RescheduleRequest


class BookingCreateSerializer(serializers.Serializer):
    """Input of a client's booking request."""

    service = serializers.IntegerField()
    start_datetime = serializers.DateTimeField()
    location_type = serializers.ChoiceField(choices=Service.LocationType.choices)
    client_address_line1 = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    client_postcode = serializers.CharField(max_length=10, required=False, allow_blank=True, default="")
    client_city = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    client_provides_own_materials = serializers.BooleanField(required=False, default=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class BookingSerializer(serializers.ModelSerializer):
    """Booking details for its parties and admins."""

    client_name = serializers.ReadOnlyField(source="client.display_name")
    freelancer_name = serializers.ReadOnlyField(source="freelancer.display_name")
    service_name = serializers.ReadOnlyField(source="service.name")

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_code",
            "client",
            "client_name",
            "freelancer",
            "freelancer_name",
            "service",
            "service_name",
            "start_datetime",
            "end_datetime",
            "location_type",
            "status",
            "payment_status",
            "client_address_line1",
            "client_postcode",
            "client_city",
            "client_provides_own_materials",
            "notes",
            "price_base_pence",
            "price_materials_pence",
            "price_travel_pence",
            "platform_fee_pence",
            "total_price_pence",
            "expires_at",
            "auto_confirm_at",
            "completed_at",
            "declined_reason",
            "declined_at",
            "cancelled_at",
            "cancelled_by",
            "cancellation_reason",
            "refund_amount_pence",
            "refund_percentage",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class BookingAuditLogSerializer(serializers.ModelSerializer):
    user_email = serializers.ReadOnlyField(source="user.email")

    class Meta:
        model = BookingAuditLog
        fields = ["id", "action", "previous_status", "new_status", "metadata", "user", "user_email", "created_at"]


class RescheduleRequestSerializer(serializers.ModelSerializer):
    class Meta:
        model = RescheduleRequest
        fields = [
            "id",
            "booking",
            "requested_by",
            "new_start_datetime",
            "new_end_datetime",
            "reason",
            "status",
            "responded_by",
            "responded_at",
            "response_note",
            "created_at",
        ]
        read_only_fields = fields


class RescheduleCreateSerializer(serializers.Serializer):
    new_start_datetime = serializers.DateTimeField()
    new_end_datetime = serializers.DateTimeField()
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class RescheduleRespondSerializer(serializers.Serializer):
    accept = serializers.BooleanField()
    note = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
