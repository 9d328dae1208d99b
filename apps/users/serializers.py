"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import PHONE_VALIDATOR, FreelancerProfile

User = get_user_model()


class FreelancerProfileSerializer(serializers.ModelSerializer):
    """Public part of a freelancer profile."""

    class Meta:
        model = FreelancerProfile
        fields = [
            "bio",
            "city",
            "postcode",
            "specialties",
            "profile_photo",
            "average_rating",
            "total_reviews",
        ]
        read_only_fields = ["average_rating", "total_reviews"]

    def validate_specialties(self, value):  # type: ignore
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError("Specialties must be a list of strings.")
        return value


class UserSerializer(serializers.ModelSerializer):
    """Main user serializer."""

    freelancer_profile = FreelancerProfileSerializer(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "first_name",
            "last_name",
            "phone",
            "role",
            "status",
            "is_verified",
            "is_verified_freelancer",
            "freelancer_profile",
            "last_activity_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "email",
            "role",
            "status",
            "is_verified",
            "is_verified_freelancer",
            "last_activity_at",
            "created_at",
            "updated_at",
        ]


class MeUpdateSerializer(serializers.ModelSerializer):
    """PATCH /users/me/: own contact details plus the freelancer profile."""

    phone = serializers.CharField(required=False, allow_null=True, validators=[PHONE_VALIDATOR])
    freelancer_profile = FreelancerProfileSerializer(required=False)

    class Meta:
        model = User
        fields = ["username", "first_name", "last_name", "phone", "freelancer_profile"]

    def validate_phone(self, value):  # type: ignore
        if value and User.objects.filter(phone=value).exclude(pk=self.instance.pk).exists():
            raise serializers.ValidationError("This phone number is already in use.")
        return value

    def update(self, instance, validated_data):  # type: ignore
        profile_data = validated_data.pop("freelancer_profile", None)
        instance = super().update(instance, validated_data)
        if profile_data is not None:
            if not instance.is_freelancer():
                raise serializers.ValidationError(
                    {"freelancer_profile": "Only freelancers have a public profile."}
                )
            profile, _ = FreelancerProfile.objects.get_or_create(user=instance)
            for field, value in profile_data.items():
                setattr(profile, field, value)
            profile.save()
        return instance


class PublicFreelancerSerializer(serializers.ModelSerializer):
    """Freelancer card shown to clients."""

    display_name = serializers.CharField(read_only=True)
    freelancer_profile = FreelancerProfileSerializer(read_only=True)

    class Meta:
        model = User
        fields = ["id", "display_name", "is_verified_freelancer", "freelancer_profile"]
