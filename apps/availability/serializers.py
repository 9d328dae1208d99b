"""Serializers for the availability domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import AvailabilityException, AvailabilityRule, AvailabilitySettings


class AvailabilityRuleSerializer(serializers.ModelSerializer):
    day_display = serializers.ReadOnlyField(source="get_day_of_week_display")

    class Meta:
        model = AvailabilityRule
        fields = ["id", "day_of_week", "day_display", "start_time", "end_time", "is_active"]
        read_only_fields = ["id", "day_display"]

    def validate(self, attrs):  # type: ignore
        if attrs["start_time"] >= attrs["end_time"]:
            raise serializers.ValidationError("Start time must be before end time.")
        return attrs


class AvailabilityRuleListSerializer(serializers.Serializer):
    """Full weekly schedule submitted in one PUT."""

    rules = AvailabilityRuleSerializer(many=True)

    def validate_rules(self, value):  # type: ignore
        by_day: dict[int, list] = {}
        for rule in value:
            if not rule.get("is_active", True):
                continue
            by_day.setdefault(rule["day_of_week"], []).append((rule["start_time"], rule["end_time"]))
        for windows in by_day.values():
            windows.sort()
            for (_, previous_end), (next_start, _) in zip(windows, windows[1:]):
                if next_start < previous_end:
                    raise serializers.ValidationError("Working windows on the same day must not overlap.")
        return value


class AvailabilityExceptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = AvailabilityException
        fields = ["id", "date", "start_time", "end_time", "exception_type", "reason", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate(self, attrs):  # type: ignore
        start = attrs.get("start_time", getattr(self.instance, "start_time", None))
        end = attrs.get("end_time", getattr(self.instance, "end_time", None))
        if (start is None) != (end is None):
            raise serializers.ValidationError("Provide both start and end time, or neither for a full day.")
        if start is not None and start >= end:
            raise serializers.ValidationError("Start time must be before end time.")
        return attrs


class AvailabilitySettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = AvailabilitySettings
        fields = ["min_lead_time_hours", "max_bookings_per_day", "buffer_minutes", "updated_at"]
        read_only_fields = ["updated_at"]

    def validate_max_bookings_per_day(self, value):  # type: ignore
        if value is not None and value < 1:
            raise serializers.ValidationError("Must be at least 1, or empty for no limit.")
        return value


class SlotQuerySerializer(serializers.Serializer):
    service = serializers.IntegerField()
    date = serializers.DateField()
