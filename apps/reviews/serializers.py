"""Serializers for reviews.

Writes go through small input serializers; the creating client and the
reviewed freelancer are taken from the booking in the service layer.
"""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Review


class ReviewCreateSerializer(serializers.Serializer):
    booking = serializers.IntegerField()
    rating = serializers.IntegerField(min_value=1, max_value=5)
    text = serializers.CharField(required=False, allow_blank=True, default="", max_length=2000)


class ReviewSerializer(serializers.ModelSerializer):
    """Read serializer for reviews including related ids."""

    client_name = serializers.ReadOnlyField(source="client.display_name")
    booking_code = serializers.ReadOnlyField(source="booking.booking_code")
    service_name = serializers.ReadOnlyField(source="booking.service.name")

    class Meta:
        model = Review
        fields = [
            "id",
            "booking",
            "booking_code",
            "service_name",
            "client",
            "client_name",
            "freelancer",
            "rating",
            "text",
            "freelancer_response",
            "freelancer_response_at",
            "is_removed",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class FreelancerResponseSerializer(serializers.Serializer):
    response = serializers.CharField(max_length=2000)


class ReviewRemovalSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)
