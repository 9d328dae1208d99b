"""API tests for authentication endpoints."""

from __future__ import annotations

from datetime import timedelta

from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.notifications.models import Notification
from apps.users.models import FreelancerProfile, PasswordResetToken, User


class AuthAPITests(APITestCase):
    def test_register_client_returns_tokens(self) -> None:
        payload = {
            "email": "amara@example.com",
            "phone": "+447700900123",
            "first_name": "Amara",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
        }

        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertIn("tokens", response.data)
        self.assertEqual(response.data["user"]["role"], User.RoleChoices.CLIENT)
        self.assertFalse(FreelancerProfile.objects.exists())
        welcome = Notification.objects.get(user__email="amara@example.com")
        self.assertEqual(welcome.notification_type, Notification.Type.ACCOUNT)

    def test_register_freelancer_creates_profile(self) -> None:
        payload = {
            "email": "braider@example.com",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
            "role": "freelancer",
        }

        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        user = User.objects.get(email="braider@example.com")
        self.assertTrue(user.is_freelancer())
        self.assertTrue(FreelancerProfile.objects.filter(user=user).exists())

    def test_register_cannot_choose_admin_role(self) -> None:
        payload = {
            "email": "sneaky@example.com",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
            "role": "admin",
        }

        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email="sneaky@example.com").exists())

    def test_login_limited_attempts(self) -> None:
        user = User.objects.create_user(
            email="lock@example.com",
            phone="+447700900200",
            password="CorrectPassword1",
        )

        url = reverse("auth:login")
        wrong_payload = {"login": user.email, "password": "wrong"}
        for _ in range(5):
            response = self.client.post(url, wrong_payload, format="json")

        user.refresh_from_db()
        self.assertTrue(user.is_locked)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        locked = self.client.post(url, {"login": user.email, "password": "CorrectPassword1"})
        self.assertEqual(locked.status_code, status.HTTP_400_BAD_REQUEST)

        user.locked_until = timezone.now() - timedelta(minutes=1)
        user.save(update_fields=["locked_until"])
        response = self.client.post(url, {"login": user.email, "password": "CorrectPassword1"})
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)

    def test_login_by_phone(self) -> None:
        User.objects.create_user(email="phone@example.com", phone="+447700900300", password="Secret12345")

        response = self.client.post(
            reverse("auth:login"),
            {"login": "+44 7700 900300", "password": "Secret12345"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)

    def test_password_reset_flow(self) -> None:
        user = User.objects.create_user(
            email="reset@example.com",
            phone="+447700900400",
            password="OldPassword1",
        )

        request_resp = self.client.post(
            reverse("auth:password-reset-request"),
            {"identifier": user.email},
            format="json",
        )
        self.assertEqual(request_resp.status_code, status.HTTP_202_ACCEPTED, request_resp.data)
        self.assertEqual(len(mail.outbox), 1)

        token = PasswordResetToken.objects.get(user=user)
        self.assertIn(token.code, mail.outbox[0].body)
        confirm_payload = {
            "identifier": user.email,
            "code": token.code,
            "new_password": "NewPassword1",
            "new_password_confirm": "NewPassword1",
        }
        confirm_resp = self.client.post(
            reverse("auth:password-reset-confirm"),
            confirm_payload,
            format="json",
        )
        self.assertEqual(confirm_resp.status_code, status.HTTP_200_OK, confirm_resp.data)
        user.refresh_from_db()
        self.assertTrue(user.check_password("NewPassword1"))

    def test_wrong_reset_code_consumes_attempt(self) -> None:
        user = User.objects.create_user(email="guess@example.com", password="OldPassword1")
        self.client.post(reverse("auth:password-reset-request"), {"identifier": user.email}, format="json")
        token = PasswordResetToken.objects.get(user=user)
        wrong_code = "000000" if token.code != "000000" else "111111"

        response = self.client.post(
            reverse("auth:password-reset-confirm"),
            {
                "identifier": user.email,
                "code": wrong_code,
                "new_password": "NewPassword1",
                "new_password_confirm": "NewPassword1",
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        token.refresh_from_db()
        self.assertEqual(token.attempts_left, 2)
