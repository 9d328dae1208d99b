"""Serializers for payouts."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Payout, PayoutAccount, PayoutAuditLog, PayoutSchedule, PayoutSettings


class PayoutAccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = PayoutAccount
        fields = [
            "stripe_account_id",
            "account_status",
            "onboarding_completed",
            "payouts_enabled",
            "details_submitted",
            "requirements_due",
            "updated_at",
        ]
        read_only_fields = fields


class OnboardingSerializer(serializers.Serializer):
    return_url = serializers.URLField(required=False)
    refresh_url = serializers.URLField(required=False)


class PayoutScheduleSerializer(serializers.ModelSerializer):
    class Meta:
        model = PayoutSchedule
        fields = ["schedule_type", "updated_at"]
        read_only_fields = ["updated_at"]


class PayoutAuditLogSerializer(serializers.ModelSerializer):
    actor_email = serializers.ReadOnlyField(source="actor.email")

    class Meta:
        model = PayoutAuditLog
        fields = ["action", "old_status", "new_status", "details", "actor_email", "created_at"]


class PayoutSerializer(serializers.ModelSerializer):
    booking_code = serializers.ReadOnlyField(source="booking.booking_code")

    class Meta:
        model = Payout
        fields = [
            "id",
            "freelancer",
            "booking",
            "booking_code",
            "amount_pence",
            "service_amount_pence",
            "commission_amount_pence",
            "booking_fee_pence",
            "status",
            "scheduled_date",
            "processed_date",
            "transfer_id",
            "error_message",
            "created_at",
        ]
        read_only_fields = fields


class AdminPayoutSerializer(PayoutSerializer):
    freelancer_email = serializers.ReadOnlyField(source="freelancer.email")
    audit_logs = PayoutAuditLogSerializer(many=True, read_only=True)

    class Meta(PayoutSerializer.Meta):
        fields = PayoutSerializer.Meta.fields + ["freelancer_email", "admin_notes", "audit_logs"]
        read_only_fields = fields


class PayoutOverrideSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Payout.Status.choices)
    admin_notes = serializers.CharField()


class PayoutSettingsSerializer(serializers.ModelSerializer):
    platform_commission_percent = serializers.IntegerField(min_value=0, max_value=100, required=False)
    booking_fee_fixed_pence = serializers.IntegerField(min_value=0, required=False)
    auto_confirm_timeout_hours = serializers.IntegerField(min_value=1, required=False)

    class Meta:
        model = PayoutSettings
        fields = [
            "platform_commission_percent",
            "booking_fee_fixed_pence",
            "auto_confirm_timeout_hours",
            "default_payout_schedule",
            "updated_at",
        ]
        read_only_fields = ["updated_at"]
