"""Serializers for disputes."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Dispute, DisputeAttachment, DisputeAuditLog, DisputeNote


class DisputeAttachmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = DisputeAttachment
        fields = ["id", "file", "description", "uploaded_by", "uploaded_at"]
        read_only_fields = ["id", "uploaded_by", "uploaded_at"]


class DisputeSerializer(serializers.ModelSerializer):
    booking_code = serializers.ReadOnlyField(source="booking.booking_code")
    attachments = DisputeAttachmentSerializer(many=True, read_only=True)

    class Meta:
        model = Dispute
        fields = [
            "id",
            "booking",
            "booking_code",
            "raised_by",
            "category",
            "description",
            "status",
            "resolution_type",
            "resolution_amount_pence",
            "resolution_notes",
            "resolved_by",
            "resolved_at",
            "attachments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "raised_by",
            "status",
            "resolution_type",
            "resolution_amount_pence",
            "resolution_notes",
            "resolved_by",
            "resolved_at",
            "created_at",
            "updated_at",
        ]


class DisputeCreateSerializer(serializers.Serializer):
    booking = serializers.IntegerField()
    category = serializers.ChoiceField(choices=Dispute.Category.choices)
    description = serializers.CharField()


class DisputeNoteSerializer(serializers.ModelSerializer):
    author_email = serializers.ReadOnlyField(source="author.email")

    class Meta:
        model = DisputeNote
        fields = ["id", "note", "author", "author_email", "created_at"]
        read_only_fields = ["id", "author", "author_email", "created_at"]


class DisputeAuditLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = DisputeAuditLog
        fields = ["id", "action", "actor", "details", "created_at"]


class DisputeStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[Dispute.Status.NEW, Dispute.Status.IN_REVIEW])


class DisputeResolveSerializer(serializers.Serializer):
    resolution_type = serializers.ChoiceField(choices=Dispute.ResolutionType.choices)
    resolution_amount_pence = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    resolution_notes = serializers.CharField(required=False, allow_blank=True, default="")
    suspend_user = serializers.ChoiceField(choices=["client", "freelancer"], required=False, allow_null=True)
    suspension_reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if (
            attrs["resolution_type"] == Dispute.ResolutionType.PARTIAL_REFUND
            and not attrs.get("resolution_amount_pence")
        ):
            raise serializers.ValidationError(
                {"resolution_amount_pence": "Required for a partial refund."}
            )
        return attrs
