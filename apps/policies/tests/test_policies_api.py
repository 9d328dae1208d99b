"""Tests for refund tiers and freelancer reliability."""

from __future__ import annotations

from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.catalog.models import Service, Style
from apps.notifications.models import Notification
from apps.policies.models import CancellationPolicy, FreelancerCancellation, ReliabilityConfig
from apps.policies.services import (
    CANCELLED_BY_CLIENT,
    CANCELLED_BY_FREELANCER,
    calculate_refund,
    enforce_reliability,
    get_freelancer_cancellation_stats,
    track_freelancer_cancellation,
)
from apps.users.models import User


class RefundCalculationTests(APITestCase):
    def setUp(self) -> None:
        self.now = timezone.now()

    def test_default_tiers(self) -> None:
        cases = [
            (timedelta(hours=72), 100, 10000),
            (timedelta(hours=48), 100, 10000),
            (timedelta(hours=47, minutes=59), 50, 5000),
            (timedelta(hours=24), 50, 5000),
            (timedelta(hours=5), 0, 0),
        ]
        for delta, percentage, amount in cases:
            with self.subTest(delta=delta):
                result = calculate_refund(10000, self.now + delta, self.now, CANCELLED_BY_CLIENT)
                self.assertEqual(result.refund_percentage, percentage)
                self.assertEqual(result.refund_amount_pence, amount)

    def test_hours_are_rounded_down(self) -> None:
        result = calculate_refund(10000, self.now + timedelta(hours=47, minutes=59), self.now, CANCELLED_BY_CLIENT)
        self.assertEqual(result.hours_before_service, 47)
        self.assertEqual(result.applied_policy, "client_cancel_24h_50pct")

    def test_freelancer_cancellation_always_refunds_in_full(self) -> None:
        result = calculate_refund(10000, self.now + timedelta(hours=1), self.now, CANCELLED_BY_FREELANCER)
        self.assertEqual(result.refund_percentage, 100)
        self.assertEqual(result.refund_amount_pence, 10000)
        self.assertEqual(result.applied_policy, "freelancer_cancel_full_refund")

    def test_past_start_falls_back_to_lowest_tier(self) -> None:
        CancellationPolicy.objects.create(hours_threshold=12, refund_percentage=25)
        result = calculate_refund(10000, self.now - timedelta(hours=2), self.now, CANCELLED_BY_CLIENT)
        self.assertEqual(result.refund_percentage, 25)

    def test_odd_amount_rounds_half_up(self) -> None:
        CancellationPolicy.objects.create(hours_threshold=0, refund_percentage=50)
        result = calculate_refund(9999, self.now + timedelta(hours=1), self.now, CANCELLED_BY_CLIENT)
        self.assertEqual(result.refund_amount_pence, 5000)


class CancellationPolicyAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="admin@example.com",
            password="AdminPass123",
            role=User.RoleChoices.ADMIN,
        )
        self.url = reverse("cancellation-policies")

    def test_anyone_reads_seeded_defaults(self) -> None:
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [(row["hours_threshold"], row["refund_percentage"]) for row in response.data],
            [(48, 100), (24, 50), (0, 0)],
        )

    def test_admin_replaces_tiers(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.put(
            self.url,
            {"policies": [{"hours_threshold": 0, "refund_percentage": 10}, {"hours_threshold": 72, "refund_percentage": 90}]},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(
            list(CancellationPolicy.objects.values_list("hours_threshold", "refund_percentage")),
            [(72, 90), (0, 10)],
        )

    def test_duplicate_thresholds_are_rejected(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.put(
            self.url,
            {"policies": [{"hours_threshold": 24, "refund_percentage": 10}, {"hours_threshold": 24, "refund_percentage": 90}]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_admin_cannot_edit(self) -> None:
        client = User.objects.create_user(email="c@example.com", password="Client12345")
        self.client.force_authenticate(client)
        response = self.client.put(self.url, {"policies": []}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ReliabilityTests(APITestCase):
    def setUp(self) -> None:
        self.freelancer = User.objects.create_user(
            email="stylist@example.com",
            password="StylistPass123",
            role=User.RoleChoices.FREELANCER,
        )
        self.client_user = User.objects.create_user(email="client@example.com", password="ClientPass123")
        self.service = Service.objects.create(
            freelancer=self.freelancer,
            style=Style.objects.create(name="Locs", slug="locs"),
            name="Loc retwist",
            duration_minutes=60,
            base_price_pence=5000,
            location_types=[Service.LocationType.CLIENT_TRAVELS],
        )

    def _cancel_last_minute(self, times: int) -> None:
        start = timezone.now() + timedelta(hours=3)
        for _ in range(times):
            booking = Booking.objects.create(
                client=self.client_user,
                freelancer=self.freelancer,
                service=self.service,
                start_datetime=start,
                end_datetime=start + timedelta(hours=1),
                location_type=Service.LocationType.CLIENT_TRAVELS,
                status=Booking.Status.CANCELLED,
            )
            track_freelancer_cancellation(self.freelancer, booking, 3)

    def test_warning_at_threshold(self) -> None:
        self._cancel_last_minute(2)

        warning = enforce_reliability(self.freelancer)

        self.assertIn("2 last-minute cancellations", warning)
        self.assertTrue(
            Notification.objects.filter(
                user=self.freelancer,
                notification_type=Notification.Type.RELIABILITY_WARNING,
            ).exists()
        )
        self.freelancer.refresh_from_db()
        self.assertEqual(self.freelancer.status, User.AccountStatus.ACTIVE)

    def test_suspension_at_threshold(self) -> None:
        self._cancel_last_minute(5)

        message = enforce_reliability(self.freelancer)

        self.assertIn("suspended", message)
        self.freelancer.refresh_from_db()
        self.assertEqual(self.freelancer.status, User.AccountStatus.SUSPENDED)

    def test_old_cancellations_fall_out_of_the_window(self) -> None:
        self._cancel_last_minute(3)
        FreelancerCancellation.objects.update(cancelled_at=timezone.now() - timedelta(days=31))

        stats = get_freelancer_cancellation_stats(self.freelancer)

        self.assertEqual(stats.total_cancellations, 0)
        self.assertFalse(stats.is_at_risk)

    def test_freelancer_reads_own_stats(self) -> None:
        self._cancel_last_minute(1)
        self.client.force_authenticate(self.freelancer)

        response = self.client.get(reverse("reliability-stats"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["last_minute_cancellations"], 1)
        self.assertEqual(response.data["suspension_threshold"], 5)

    def test_config_rejects_warning_above_suspension(self) -> None:
        admin = User.objects.create_user(email="admin@example.com", password="AdminPass123", role=User.RoleChoices.ADMIN)
        self.client.force_authenticate(admin)

        response = self.client.patch(reverse("reliability-config"), {"warning_threshold": 6}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(ReliabilityConfig.load().warning_threshold, 2)
