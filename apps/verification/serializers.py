"""Serializers for freelancer verification."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import FreelancerVerification, VerificationActionLog


class VerificationStatusSerializer(serializers.ModelSerializer):
    """What a freelancer sees about their own submission."""

    class Meta:
        model = FreelancerVerification
        fields = [
            "status",
            "legal_name",
            "date_of_birth",
            "address_line1",
            "address_line2",
            "city",
            "postcode",
            "id_document_type",
            "submitted_at",
            "reviewed_at",
            "rejection_note",
        ]
        read_only_fields = fields


class VerificationSubmitSerializer(serializers.ModelSerializer):
    class Meta:
        model = FreelancerVerification
        fields = [
            "legal_name",
            "date_of_birth",
            "address_line1",
            "address_line2",
            "city",
            "postcode",
            "id_document_type",
            "id_document",
        ]


class VerificationActionLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = VerificationActionLog
        fields = ["id", "action", "admin", "previous_status", "new_status", "notes", "created_at"]
        read_only_fields = fields


class AdminVerificationSerializer(VerificationStatusSerializer):
    freelancer_email = serializers.EmailField(source="freelancer.email", read_only=True)
    history = serializers.SerializerMethodField()

    class Meta(VerificationStatusSerializer.Meta):
        fields = ["id", "freelancer", "freelancer_email", "id_document", "reviewed_by", "history"] + (
            VerificationStatusSerializer.Meta.fields
        )
        read_only_fields = fields

    def get_history(self, obj):  # type: ignore
        logs = VerificationActionLog.objects.filter(freelancer_id=obj.freelancer_id)
        return VerificationActionLogSerializer(logs, many=True).data


class ApproveSerializer(serializers.Serializer):
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")


class RejectSerializer(serializers.Serializer):
    rejection_note = serializers.CharField(max_length=1000)
