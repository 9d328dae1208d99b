"""Serializers for user reports."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Report, ReportAdminAction


class ReportSerializer(serializers.ModelSerializer):
    class Meta:
        model = Report
        fields = [
            "id",
            "reported_user",
            "booking",
            "issue_type",
            "description",
            "attachment",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ReportAdminActionSerializer(serializers.ModelSerializer):
    admin_email = serializers.EmailField(source="admin.email", read_only=True, default=None)

    class Meta:
        model = ReportAdminAction
        fields = [
            "id",
            "action_type",
            "admin_email",
            "notes",
            "previous_status",
            "new_status",
            "previous_account_status",
            "new_account_status",
            "created_at",
        ]
        read_only_fields = fields


class AdminReportSerializer(ReportSerializer):
    reporter_email = serializers.EmailField(source="reporter.email", read_only=True)
    reported_user_email = serializers.EmailField(source="reported_user.email", read_only=True)
    reported_user_status = serializers.CharField(source="reported_user.status", read_only=True)
    admin_actions = ReportAdminActionSerializer(many=True, read_only=True)

    class Meta(ReportSerializer.Meta):
        fields = ReportSerializer.Meta.fields + [
            "reporter",
            "reporter_email",
            "reported_user_email",
            "reported_user_status",
            "admin_actions",
        ]
        read_only_fields = fields


class ReportCreateSerializer(serializers.Serializer):
    reported_user = serializers.IntegerField()
    booking = serializers.IntegerField(required=False, allow_null=True)
    issue_type = serializers.ChoiceField(choices=Report.IssueType.choices)
    description = serializers.CharField(max_length=2000)
    attachment = serializers.FileField(required=False)


class ReportStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Report.Status.choices)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")


class AccountActionSerializer(serializers.Serializer):
    ACTIONS = (
        ReportAdminAction.ActionType.WARN,
        ReportAdminAction.ActionType.SUSPEND,
        ReportAdminAction.ActionType.REACTIVATE,
    )

    action = serializers.ChoiceField(choices=[(a.value, a.label) for a in ACTIONS])
    reason = serializers.CharField(max_length=255)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")
