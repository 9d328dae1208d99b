"""Serializers for the finance domain (payments)."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    booking_status = serializers.ReadOnlyField(source="booking.status")
    booking_payment_status = serializers.ReadOnlyField(source="booking.payment_status")
    refundable_pence = serializers.ReadOnlyField()

    class Meta:
        model = Payment
        fields = [
            "id",
            "booking",
            "booking_status",
            "booking_payment_status",
            "provider",
            "payment_intent_id",
            "status",
            "escrow_status",
            "amount_pence",
            "currency",
            "platform_fee_pence",
            "freelancer_payout_pence",
            "refund_id",
            "refund_status",
            "refund_amount_pence",
            "refundable_pence",
            "refunded_at",
            "escrow_released_at",
            "paid_at",
            "created_at",
        ]
        read_only_fields = fields


class RefundRequestSerializer(serializers.Serializer):
    amount_pence = serializers.IntegerField(min_value=1, required=False)
    reason = serializers.ChoiceField(
        choices=["duplicate", "fraudulent", "requested_by_customer"],
        default="requested_by_customer",
    )
