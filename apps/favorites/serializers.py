"""Serializers for the favorites domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.users.models import CustomUser

from .models import FavoriteFreelancer


class FreelancerShortSerializer(serializers.Serializer):
    """Card data shown for a saved freelancer."""

    id = serializers.IntegerField()
    display_name = serializers.CharField()
    average_rating = serializers.SerializerMethodField()
    total_reviews = serializers.SerializerMethodField()

    def get_average_rating(self, obj):  # type: ignore
        profile = getattr(obj, "freelancer_profile", None)
        return profile.average_rating if profile else None

    def get_total_reviews(self, obj):  # type: ignore
        profile = getattr(obj, "freelancer_profile", None)
        return profile.total_reviews if profile else 0


class FavoriteFreelancerSerializer(serializers.ModelSerializer):
    freelancer = FreelancerShortSerializer(read_only=True)

    class Meta:
        model = FavoriteFreelancer
        fields = ['id', 'freelancer', 'created_at']


class FavoriteToggleSerializer(serializers.Serializer):
    freelancer_id = serializers.IntegerField()

    def validate_freelancer_id(self, value: int) -> int:  # type: ignore
        exists = CustomUser.objects.filter(
            id=value,
            role=CustomUser.RoleChoices.FREELANCER,
            status=CustomUser.AccountStatus.ACTIVE,
        ).exists()
        if not exists:
            raise serializers.ValidationError("Freelancer not found.")
        return value
