"""Tests for opening and resolving disputes."""

from __future__ import annotations

from datetime import timedelta

from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.catalog.models import Service, Style
from apps.disputes.models import Dispute, DisputeAuditLog
from apps.finances.models import Payment
from apps.notifications.models import Notification
from apps.payouts.models import Payout
from apps.users.models import User


class DisputeTestMixin:
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
            style=Style.objects.create(name="Nails", slug="nails"),
            name="Gel manicure",
            duration_minutes=60,
            base_price_pence=10000,
            location_types=[Service.LocationType.CLIENT_TRAVELS],
        )
        start = timezone.now() - timedelta(hours=4)
        self.booking = Booking.objects.create(
            client=self.client_user,
            freelancer=self.freelancer,
            service=service,
            start_datetime=start,
            end_datetime=start + timedelta(hours=1),
            location_type=Service.LocationType.CLIENT_TRAVELS,
            status=Booking.Status.IN_PROGRESS,
            payment_status=Booking.PaymentStatus.PAID,
            total_price_pence=10000,
            platform_fee_pence=1000,
        )
        self.payment = Payment.objects.create(
            booking=self.booking,
            payment_intent_id="pi_dispute",
            status=Payment.Status.SUCCEEDED,
            amount_pence=10000,
            platform_fee_pence=1000,
            freelancer_payout_pence=9000,
        )
        self.list_url = reverse("dispute-list")

    def _open(self) -> Dispute:
        self.client.force_authenticate(self.client_user)
        response = self.client.post(
            self.list_url,
            {"booking": self.booking.id, "category": "no-show", "description": "Nobody came"},
            format="json",
        )
        assert response.status_code == status.HTTP_201_CREATED, response.data
        return Dispute.objects.get(pk=response.data["id"])

    def _resolve(self, dispute: Dispute, **payload):
        self.client.force_authenticate(self.admin)
        return self.client.post(reverse("dispute-resolve", args=[dispute.id]), payload, format="json")


class OpenDisputeTests(DisputeTestMixin, APITestCase):
    def test_client_opens_dispute_and_escrow_is_frozen(self) -> None:
        dispute = self._open()

        self.assertEqual(dispute.status, Dispute.Status.NEW)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.escrow_status, Payment.EscrowStatus.DISPUTED)
        self.assertTrue(DisputeAuditLog.objects.filter(dispute=dispute, action="created").exists())
        self.assertTrue(
            Notification.objects.filter(user=self.freelancer, notification_type=Notification.Type.DISPUTE_OPENED).exists()
        )
        self.assertTrue(Notification.objects.filter(user=self.admin, notification_type=Notification.Type.DISPUTE_OPENED).exists())

    def test_second_dispute_conflicts(self) -> None:
        self._open()
        response = self.client.post(
            self.list_url,
            {"booking": self.booking.id, "category": "quality", "description": "Again"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_dispute_after_window_is_rejected(self) -> None:
        Booking.objects.filter(pk=self.booking.pk).update(end_datetime=timezone.now() - timedelta(hours=49))
        self.client.force_authenticate(self.client_user)

        response = self.client.post(
            self.list_url,
            {"booking": self.booking.id, "category": "quality", "description": "Too late"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_freelancer_cannot_open_dispute(self) -> None:
        self.client.force_authenticate(self.freelancer)
        response = self.client.post(
            self.list_url,
            {"booking": self.booking.id, "category": "other", "description": "Rude client"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_pending_booking_cannot_be_disputed(self) -> None:
        Booking.objects.filter(pk=self.booking.pk).update(status=Booking.Status.PENDING)
        self.client.force_authenticate(self.client_user)
        response = self.client.post(
            self.list_url,
            {"booking": self.booking.id, "category": "other", "description": "Hmm"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_client_uploads_evidence(self) -> None:
        dispute = self._open()
        upload = SimpleUploadedFile("photo.jpg", b"fake-image-bytes", content_type="image/jpeg")

        response = self.client.post(
            reverse("dispute-attachments", args=[dispute.id]),
            {"file": upload, "description": "Empty salon"},
            format="multipart",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(dispute.attachments.count(), 1)

    def test_freelancer_sees_dispute_but_not_notes(self) -> None:
        dispute = self._open()
        self.client.force_authenticate(self.freelancer)

        self.assertEqual(self.client.get(self.list_url).data["count"], 1)
        response = self.client.get(reverse("dispute-notes", args=[dispute.id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ResolveDisputeTests(DisputeTestMixin, APITestCase):
    def test_full_refund(self) -> None:
        dispute = self._open()

        response = self._resolve(dispute, resolution_type="full_refund", resolution_notes="Freelancer no-show")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], Dispute.Status.RESOLVED)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.refund_amount_pence, 10000)
        self.assertEqual(self.payment.escrow_status, Payment.EscrowStatus.REFUNDED)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.COMPLETED)
        self.assertFalse(Payout.objects.exists())

    def test_partial_refund_releases_the_rest(self) -> None:
        dispute = self._open()

        response = self._resolve(dispute, resolution_type="partial_refund", resolution_amount_pence=3000)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.refund_amount_pence, 3000)
        self.assertEqual(self.payment.escrow_status, Payment.EscrowStatus.RELEASED)
        self.assertEqual(Payout.objects.get(booking=self.booking).service_amount_pence, 6000)

    def test_partial_refund_needs_amount(self) -> None:
        dispute = self._open()
        response = self._resolve(dispute, resolution_type="partial_refund")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_release_to_freelancer(self) -> None:
        dispute = self._open()

        response = self._resolve(dispute, resolution_type="release_to_freelancer")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.escrow_status, Payment.EscrowStatus.RELEASED)
        self.assertEqual(Payout.objects.get(booking=self.booking).service_amount_pence, 9000)

    def test_no_action_returns_escrow_to_held(self) -> None:
        dispute = self._open()

        response = self._resolve(dispute, resolution_type="no_action")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.escrow_status, Payment.EscrowStatus.HELD)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.IN_PROGRESS)

    def test_resolved_dispute_cannot_be_resolved_again(self) -> None:
        dispute = self._open()
        self._resolve(dispute, resolution_type="no_action")

        response = self._resolve(dispute, resolution_type="full_refund")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_resolution_can_suspend_freelancer(self) -> None:
        dispute = self._open()

        self._resolve(
            dispute,
            resolution_type="full_refund",
            suspend_user="freelancer",
            suspension_reason="Repeated no-shows",
        )

        self.freelancer.refresh_from_db()
        self.assertEqual(self.freelancer.status, User.AccountStatus.SUSPENDED)

    def test_admin_updates_status_and_adds_note(self) -> None:
        dispute = self._open()
        self.client.force_authenticate(self.admin)

        response = self.client.patch(reverse("dispute-status", args=[dispute.id]), {"status": "in_review"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "in_review")

        response = self.client.post(reverse("dispute-notes", args=[dispute.id]), {"note": "Called the client"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

        actions = list(DisputeAuditLog.objects.filter(dispute=dispute).values_list("action", flat=True))
        self.assertEqual(actions, ["created", "status_updated", "note_added"])
