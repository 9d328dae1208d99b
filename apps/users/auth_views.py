"""Authentication endpoints: register, login and password reset by code."""

from __future__ import annotations

import logging

from rest_framework import status  # type: ignore
from rest_framework.permissions import AllowAny  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore
from rest_framework_simplejwt.tokens import RefreshToken  # type: ignore

from apps.notifications.models import Notification
from apps.notifications.services import send_notification

from .auth_serializers import (
    LoginSerializer,
    PasswordResetConfirmSerializer,
    PasswordResetRequestSerializer,
    RegisterSerializer,
)
from .serializers import UserSerializer

logger = logging.getLogger(__name__)

WELCOME_MESSAGES = {
    "client": "Your account is ready. Verify it to start booking appointments.",
    "freelancer": "Your account is ready. Add your services while our team reviews your profile.",
}


class TokenIssuingView(APIView):
    """Public endpoint answering with the user and a JWT pair.

    The access token carries the ``role`` claim so clients can route
    without an extra ``me`` call.
    """

    permission_classes = [AllowAny]
    success_status = status.HTTP_200_OK

    def respond(self, user) -> Response:
        refresh = RefreshToken.for_user(user)
        refresh["role"] = user.role
        return Response(
            {
                "user": UserSerializer(user).data,
                "tokens": {"refresh": str(refresh), "access": str(refresh.access_token)},
            },
            status=self.success_status,
        )


class RegisterView(TokenIssuingView):
    success_status = status.HTTP_201_CREATED

    def post(self, request):  # type: ignore
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"Registered {user.role} account {user.email}")
        send_notification(
            user,
            Notification.Type.ACCOUNT,
            "Welcome",
            WELCOME_MESSAGES.get(user.role, ""),
        )
        return self.respond(user)


class LoginView(TokenIssuingView):
    def post(self, request):  # type: ignore
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self.respond(serializer.validated_data["user"])


class PasswordResetRequestView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):  # type: ignore
        serializer = PasswordResetRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({"detail": "A reset code has been sent to your email."}, status=status.HTTP_202_ACCEPTED)


class PasswordResetConfirmView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):  # type: ignore
        serializer = PasswordResetConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"Password reset completed for {user.email}")
        return Response({"detail": "Your password has been changed. Log in with the new password."})
