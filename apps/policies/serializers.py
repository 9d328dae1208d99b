"""Serializers for cancellation policies and reliability settings."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import CancellationPolicy, ReliabilityConfig


class CancellationPolicySerializer(serializers.ModelSerializer):
    class Meta:
        model = CancellationPolicy
        fields = ["id", "policy_type", "hours_threshold", "refund_percentage", "updated_at"]
        read_only_fields = ["id", "policy_type", "updated_at"]


class PolicyTierSerializer(serializers.Serializer):
    hours_threshold = serializers.IntegerField(min_value=0)
    refund_percentage = serializers.IntegerField(min_value=0, max_value=100)


class PolicyBulkUpdateSerializer(serializers.Serializer):
    """Full replacement of the client cancellation tiers."""

    policies = PolicyTierSerializer(many=True, allow_empty=False)

    def validate_policies(self, value):
        thresholds = [tier["hours_threshold"] for tier in value]
        if len(thresholds) != len(set(thresholds)):
            raise serializers.ValidationError("Hour thresholds must be unique.")
        return sorted(value, key=lambda tier: tier["hours_threshold"], reverse=True)


class ReliabilityConfigSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReliabilityConfig
        fields = ["warning_threshold", "suspension_threshold", "time_window_days", "updated_at"]
        read_only_fields = ["updated_at"]

    def validate(self, attrs):
        warning = attrs.get("warning_threshold", getattr(self.instance, "warning_threshold", None))
        suspension = attrs.get("suspension_threshold", getattr(self.instance, "suspension_threshold", None))
        if warning is not None and suspension is not None and warning >= suspension:
            raise serializers.ValidationError(
                {"suspension_threshold": "Must be greater than the warning threshold."}
            )
        return attrs


class RefundPreviewSerializer(serializers.Serializer):
    refund_percentage = serializers.IntegerField()
    refund_amount_pence = serializers.IntegerField()
    hours_before_service = serializers.IntegerField()
    applied_policy = serializers.CharField()
