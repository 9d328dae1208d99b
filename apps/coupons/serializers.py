from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import DiscountCoupon


class DiscountCouponSerializer(serializers.ModelSerializer):
    class Meta:
        model = DiscountCoupon
        fields = [
            "id",
            "code",
            "discount_type",
            "discount_value",
            "min_booking_amount_pence",
            "max_discount_amount_pence",
            "usage_limit",
            "used_count",
            "valid_from",
            "valid_until",
            "applicable_to",
            "is_active",
            "notes",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["used_count", "created_by", "created_at", "updated_at"]

    def to_internal_value(self, data):
        if isinstance(data, dict) and isinstance(data.get("code"), str):
            data = {**data, "code": data["code"].strip().upper()}
        return super().to_internal_value(data)

    def validate(self, attrs):
        discount_type = attrs.get("discount_type", getattr(self.instance, "discount_type", None))
        value = attrs.get("discount_value", getattr(self.instance, "discount_value", None))
        if discount_type == DiscountCoupon.DiscountType.PERCENTAGE and value is not None and value > 100:
            raise serializers.ValidationError({"discount_value": "A percentage discount cannot exceed 100."})

        valid_from = attrs.get("valid_from", getattr(self.instance, "valid_from", None))
        valid_until = attrs.get("valid_until", getattr(self.instance, "valid_until", None))
        if valid_from and valid_until and valid_from >= valid_until:
            raise serializers.ValidationError({"valid_until": "Must be after valid_from."})
        return attrs


class CouponValidateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    booking_amount_pence = serializers.IntegerField(min_value=0)
