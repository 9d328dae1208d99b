"""Serializers for authentication flows (register, login, password reset)."""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import Any

from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.notifications.services import send_email_notification
from .models import PHONE_VALIDATOR, CustomUser, FreelancerProfile, PasswordResetToken


User = get_user_model()

RESET_CODE_TTL = timedelta(minutes=15)
RESET_CODE_ATTEMPTS = 3
LOGIN_ATTEMPT_THRESHOLD = 5


def _find_user(identifier: str):
    """Look up a user by email, or by phone when there is no ``@``."""
    if "@" in identifier:
        return User.objects.get(email__iexact=identifier)
    return User.objects.get(phone=User.objects.normalize_phone(identifier))


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    phone = serializers.CharField(required=False, allow_blank=True, validators=[PHONE_VALIDATOR])
    password = serializers.CharField(min_length=8, write_only=True)
    password_confirm = serializers.CharField(min_length=8, write_only=True)
    first_name = serializers.CharField(required=False, allow_blank=True)
    last_name = serializers.CharField(required=False, allow_blank=True)
    username = serializers.CharField(required=False, allow_blank=True)
    role = serializers.ChoiceField(
        choices=[CustomUser.RoleChoices.CLIENT, CustomUser.RoleChoices.FREELANCER],
        default=CustomUser.RoleChoices.CLIENT,
    )

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        if attrs.get("password") != attrs.get("password_confirm"):
            raise serializers.ValidationError({"password_confirm": "Passwords do not match."})
        if User.objects.filter(email__iexact=attrs.get("email")).exists():
            raise serializers.ValidationError({"email": "A user with this email already exists."})
        phone = attrs.get("phone")
        if phone and User.objects.filter(phone=User.objects.normalize_phone(phone)).exists():
            raise serializers.ValidationError({"phone": "A user with this phone already exists."})
        if not phone:
            attrs.pop("phone", None)
        return attrs

    @transaction.atomic
    def create(self, validated_data: dict[str, Any]):  # type: ignore
        password = validated_data.pop("password")
        validated_data.pop("password_confirm", None)
        user = User.objects.create_user(password=password, **validated_data)
        if user.is_freelancer():
            FreelancerProfile.objects.create(user=user)
        return user


class LoginSerializer(serializers.Serializer):
    login = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        login = attrs.get("login", "")
        password = attrs.get("password", "")

        try:
            user = _find_user(login)
        except User.DoesNotExist:
            raise serializers.ValidationError({"login": "Invalid login or password."})

        if user.is_locked:
            raise serializers.ValidationError(
                {"non_field_errors": ["Account temporarily locked. Try again later."]}
            )

        if not user.check_password(password):
            user.register_failed_attempt(threshold=LOGIN_ATTEMPT_THRESHOLD)
            raise serializers.ValidationError({"login": "Invalid login or password."})

        if not user.is_active or user.status == CustomUser.AccountStatus.DEACTIVATED:
            raise serializers.ValidationError({"login": "This account has been deactivated."})

        user.unlock()
        user.touch_last_activity()

        attrs["user"] = user
        return attrs


class PasswordResetRequestSerializer(serializers.Serializer):
    identifier = serializers.CharField()

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        try:
            attrs["user"] = _find_user(attrs.get("identifier", ""))
        except User.DoesNotExist:
            raise serializers.ValidationError({"identifier": "User not found."})
        return attrs

    @transaction.atomic
    def create(self, validated_data: dict[str, Any]):  # type: ignore
        user = validated_data["user"]
        PasswordResetToken.objects.filter(user=user, is_used=False).update(is_used=True)

        code = f"{secrets.randbelow(1_000_000):06d}"
        token = PasswordResetToken.objects.create(
            user=user,
            code=code,
            expires_at=timezone.now() + RESET_CODE_TTL,
            attempts_left=RESET_CODE_ATTEMPTS,
            is_used=False,
        )

        send_email_notification(
            recipient_email=user.email,
            subject="Your password reset code",
            template_name=None,
            context={"message": f"Your password reset code is {code}. It expires in 15 minutes."},
        )
        return token


class PasswordResetConfirmSerializer(serializers.Serializer):
    identifier = serializers.CharField()
    code = serializers.CharField()
    new_password = serializers.CharField(min_length=8)
    new_password_confirm = serializers.CharField(min_length=8)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        if attrs.get("new_password") != attrs.get("new_password_confirm"):
            raise serializers.ValidationError({"new_password_confirm": "Passwords do not match."})
        try:
            attrs["user"] = _find_user(attrs.get("identifier", ""))
        except User.DoesNotExist:
            raise serializers.ValidationError({"identifier": "User not found."})
        return attrs

    def create(self, validated_data: dict[str, Any]):  # type: ignore
        user = validated_data["user"]
        code = validated_data["code"]

        try:
            token = PasswordResetToken.objects.filter(
                user=user,
                is_used=False,
            ).latest("created_at")
        except PasswordResetToken.DoesNotExist:
            raise serializers.ValidationError({"code": "No active code. Request a new one."})

        if token.is_expired:
            token.mark_used()
            raise serializers.ValidationError({"code": "The code has expired."})

        if token.attempts_left == 0:
            token.mark_used()
            raise serializers.ValidationError({"code": "Too many attempts. Request a new code."})

        if token.code != code:
            token.decrement_attempt()
            raise serializers.ValidationError({"code": "Invalid code."})

        with transaction.atomic():
            user.set_password(validated_data["new_password"])
            user.save(update_fields=["password"])
            token.mark_used()
        user.unlock()
        return user
