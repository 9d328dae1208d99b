"""API tests for the own-profile endpoint and admin moderation."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.notifications.models import Notification
from apps.users.models import FreelancerProfile, User


class MeEndpointTests(APITestCase):
    def setUp(self) -> None:
        self.freelancer = User.objects.create_user(
            email="nia@example.com",
            password="Secret12345",
            role=User.RoleChoices.FREELANCER,
        )
        FreelancerProfile.objects.create(user=self.freelancer)
        self.client.force_authenticate(self.freelancer)

    def test_patch_updates_profile(self) -> None:
        response = self.client.patch(
            reverse("user-me"),
            {"first_name": "Nia", "freelancer_profile": {"city": "London", "specialties": ["braids"]}},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["first_name"], "Nia")
        self.assertEqual(response.data["freelancer_profile"]["city"], "London")

    def test_role_is_read_only(self) -> None:
        self.client.patch(reverse("user-me"), {"role": "admin"}, format="json")
        self.freelancer.refresh_from_db()
        self.assertTrue(self.freelancer.is_freelancer())


class AdminModerationTests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="admin@example.com",
            password="AdminPass123",
            role=User.RoleChoices.ADMIN,
        )
        self.freelancer = User.objects.create_user(
            email="stylist@example.com",
            password="Secret12345",
            role=User.RoleChoices.FREELANCER,
        )
        self.client_user = User.objects.create_user(
            email="client@example.com",
            password="Secret12345",
        )

    def test_non_admin_forbidden(self) -> None:
        self.client.force_authenticate(self.client_user)
        response = self.client.get(reverse("admin-user-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_filters_by_role(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.get(reverse("admin-user-list"), {"role": "freelancer"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        emails = [row["email"] for row in response.data["results"]]
        self.assertEqual(emails, ["stylist@example.com"])

    def test_suspend_and_reactivate_notify_user(self) -> None:
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            reverse("admin-user-suspend", args=[self.freelancer.id]),
            {"reason": "Repeated no-shows"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.freelancer.refresh_from_db()
        self.assertEqual(self.freelancer.status, User.AccountStatus.SUSPENDED)
        self.assertEqual(self.freelancer.suspension_reason, "Repeated no-shows")

        again = self.client.post(
            reverse("admin-user-suspend", args=[self.freelancer.id]),
            {"reason": "Again"},
            format="json",
        )
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(reverse("admin-user-reactivate", args=[self.freelancer.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.freelancer.refresh_from_db()
        self.assertEqual(self.freelancer.status, User.AccountStatus.ACTIVE)
        self.assertEqual(
            Notification.objects.filter(user=self.freelancer, notification_type=Notification.Type.ACCOUNT).count(),
            2,
        )

    def test_verify_freelancer_rejects_client(self) -> None:
        self.client.force_authenticate(self.admin)

        response = self.client.post(reverse("admin-user-verify-freelancer", args=[self.client_user.id]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(reverse("admin-user-verify-freelancer", args=[self.freelancer.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.freelancer.refresh_from_db()
        self.assertTrue(self.freelancer.is_verified_freelancer)

    def test_verify_client(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.post(reverse("admin-user-verify", args=[self.client_user.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.client_user.refresh_from_db()
        self.assertTrue(self.client_user.is_verified)
