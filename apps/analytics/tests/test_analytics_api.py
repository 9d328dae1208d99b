"""Tests for the role-scoped analytics overview."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.catalog.models import Service, Style
from apps.finances.models import Payment
from apps.payouts.models import Payout
from apps.users.models import FreelancerProfile, User


class OverviewAnalyticsTests(APITestCase):
    def setUp(self) -> None:
        self.client_user = User.objects.create_user(email="client@example.com", password="ClientPass123")
        self.freelancer = User.objects.create_user(
            email="stylist@example.com",
            password="StylistPass123",
            role=User.RoleChoices.FREELANCER,
        )
        self.admin = User.objects.create_user(
            email="admin@example.com",
            password="AdminPass123",
            role=User.RoleChoices.ADMIN,
        )
        service = Service.objects.create(
            freelancer=self.freelancer,
            style=Style.objects.create(name="Brows", slug="brows"),
            name="Brow lamination",
            duration_minutes=45,
            base_price_pence=4000,
            location_types=[Service.LocationType.CLIENT_TRAVELS],
        )
        start = timezone.now() - timedelta(days=1)
        common = {
            "client": self.client_user,
            "freelancer": self.freelancer,
            "service": service,
            "start_datetime": start,
            "end_datetime": start + timedelta(minutes=45),
            "location_type": Service.LocationType.CLIENT_TRAVELS,
        }
        self.paid = Booking.objects.create(
            **common,
            status=Booking.Status.COMPLETED,
            payment_status=Booking.PaymentStatus.PAID,
            total_price_pence=4400,
            platform_fee_pence=400,
        )
        Booking.objects.create(**common, status=Booking.Status.CANCELLED)
        Payment.objects.create(
            booking=self.paid,
            payment_intent_id="pi_analytics",
            status=Payment.Status.SUCCEEDED,
            amount_pence=4400,
            platform_fee_pence=400,
            freelancer_payout_pence=4000,
            refund_amount_pence=1000,
        )
        Payout.objects.create(
            freelancer=self.freelancer,
            booking=self.paid,
            amount_pence=3400,
            service_amount_pence=4000,
            commission_amount_pence=600,
            status=Payout.Status.SCHEDULED,
            scheduled_date=timezone.localdate(),
        )
        self.url = reverse("analytics-overview")

    def test_admin_sees_marketplace_kpis(self) -> None:
        self.client.force_authenticate(self.admin)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["users_by_role"], {"admin": 1, "client": 1, "freelancer": 1})
        self.assertEqual(response.data["bookings_by_status"], {"cancelled": 1, "completed": 1})
        self.assertEqual(response.data["gmv_pence"], 4400)
        self.assertEqual(response.data["platform_fees_pence"], 400)
        self.assertEqual(response.data["open_disputes"], 0)
        self.assertEqual(response.data["pending_payouts_pence"], 3400)

    def test_freelancer_sees_own_earnings_and_rating(self) -> None:
        FreelancerProfile.objects.update_or_create(
            user=self.freelancer, defaults={"average_rating": Decimal("4.80"), "total_reviews": 5}
        )
        self.client.force_authenticate(self.freelancer)

        response = self.client.get(self.url)

        self.assertEqual(response.data["role"], "freelancer")
        self.assertEqual(response.data["earnings"]["available_balance_pence"], 3400)
        self.assertEqual(response.data["average_rating"], Decimal("4.80"))
        self.assertNotIn("gmv_pence", response.data)

    def test_client_sees_spend_net_of_refunds(self) -> None:
        self.client.force_authenticate(self.client_user)

        response = self.client.get(self.url)

        self.assertEqual(response.data["bookings_by_status"], {"cancelled": 1, "completed": 1})
        self.assertEqual(response.data["total_spent_pence"], 3400)

    def test_requires_authentication(self) -> None:
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_401_UNAUTHORIZED)
