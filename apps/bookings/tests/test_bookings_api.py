"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import datetime, time, timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.availability.models import AvailabilityRule
from apps.availability.slots import js_weekday
from apps.bookings.models import Booking, BookingAuditLog, RescheduleRequest
from apps.bookings.tasks import expire_pending_bookings, start_due_bookings
from apps.catalog.models import Service, Style
from apps.finances.models import Payment
from apps.finances.services import handle_payment_succeeded
from apps.notifications.models import Notification
from apps.policies.models import FreelancerCancellation
from apps.users.models import User

CLIENT_TRAVELS = Service.LocationType.CLIENT_TRAVELS
FREELANCER_TRAVELS = Service.LocationType.FREELANCER_TRAVELS


def upcoming_monday(min_days: int = 7):
    day = timezone.localdate() + timedelta(days=min_days)
    while js_weekday(day) != AvailabilityRule.Weekday.MONDAY:
        day += timedelta(days=1)
    return day


def at(day, hour: int, minute: int = 0) -> datetime:
    return timezone.make_aware(datetime.combine(day, time(hour, minute)))


class BookingTestMixin:
    def setUp(self) -> None:
        self.client_user = User.objects.create_user(
            email="client@example.com",
            password="ClientPass123",
            role=User.RoleChoices.CLIENT,
            is_verified=True,
        )
        self.freelancer = User.objects.create_user(
            email="stylist@example.com",
            password="StylistPass123",
            role=User.RoleChoices.FREELANCER,
            is_verified=True,
        )
        self.style = Style.objects.create(name="Braids", slug="braids")
        self.service = Service.objects.create(
            freelancer=self.freelancer,
            style=self.style,
            name="Knotless braids",
            duration_minutes=120,
            base_price_pence=10000,
            studio_price_pence=10000,
            mobile_price_pence=12000,
            travel_fee_pence=1500,
            location_types=[CLIENT_TRAVELS, FREELANCER_TRAVELS],
        )
        AvailabilityRule.objects.create(
            freelancer=self.freelancer,
            day_of_week=AvailabilityRule.Weekday.MONDAY,
            start_time=time(9, 0),
            end_time=time(17, 0),
        )
        self.day = upcoming_monday()
        self.list_url = reverse("booking-list")

    def _payload(self, start: datetime, **overrides) -> dict:
        payload = {
            "service": self.service.id,
            "start_datetime": start.isoformat(),
            "location_type": CLIENT_TRAVELS,
        }
        payload.update(overrides)
        return payload

    def _book(self, hour: int = 10) -> Booking:
        self.client.force_authenticate(self.client_user)
        response = self.client.post(self.list_url, self._payload(at(self.day, hour)), format="json")
        assert response.status_code == status.HTTP_201_CREATED, response.data
        return Booking.objects.get(pk=response.data["booking"]["id"])

    def _pay(self, booking: Booking) -> Booking:
        handle_payment_succeeded({"id": booking.payment.payment_intent_id, "latest_charge": "ch_test"})
        booking.refresh_from_db()
        return booking


class BookingCreateTests(BookingTestMixin, APITestCase):
    def test_client_creates_booking_with_payment_intent(self) -> None:
        self.client.force_authenticate(self.client_user)
        response = self.client.post(self.list_url, self._payload(at(self.day, 10)), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertTrue(response.data["payment_intent_id"].startswith("pi_emulated_"))
        self.assertTrue(response.data["client_secret"])
        self.assertEqual(response.data["price_breakdown"]["total_pence"], 10000)
        self.assertEqual(response.data["price_breakdown"]["platform_fee_pence"], 1000)

        booking = Booking.objects.get()
        self.assertEqual(booking.status, Booking.Status.PENDING)
        self.assertEqual(booking.payment_status, Booking.PaymentStatus.PAYMENT_PENDING)
        self.assertEqual(booking.end_datetime - booking.start_datetime, timedelta(minutes=120))
        self.assertIsNotNone(booking.expires_at)
        self.assertEqual(booking.payment.amount_pence, 10000)
        self.assertTrue(BookingAuditLog.objects.filter(booking=booking, action="created").exists())

    def test_mobile_booking_charges_mobile_price_and_travel(self) -> None:
        self.client.force_authenticate(self.client_user)
        payload = self._payload(
            at(self.day, 11),
            location_type=FREELANCER_TRAVELS,
            client_address_line1="1 High Street",
            client_postcode="M1 1AA",
            client_city="Manchester",
        )
        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        breakdown = response.data["price_breakdown"]
        self.assertEqual(breakdown["base_price_pence"], 12000)
        self.assertEqual(breakdown["travel_price_pence"], 1500)
        self.assertEqual(breakdown["total_pence"], 13500)

    def test_mobile_booking_requires_address(self) -> None:
        self.client.force_authenticate(self.client_user)
        response = self.client.post(
            self.list_url,
            self._payload(at(self.day, 11), location_type=FREELANCER_TRAVELS),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Booking.objects.exists())

    def test_unverified_client_cannot_book(self) -> None:
        self.client_user.is_verified = False
        self.client_user.save()
        self.client.force_authenticate(self.client_user)

        response = self.client.post(self.list_url, self._payload(at(self.day, 10)), format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_suspended_client_cannot_book(self) -> None:
        self.client_user.suspend("Repeated chargebacks")
        self.client.force_authenticate(self.client_user)

        response = self.client.post(self.list_url, self._payload(at(self.day, 10)), format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Booking.objects.exists())

    def test_freelancer_cannot_book(self) -> None:
        self.client.force_authenticate(self.freelancer)
        response = self.client.post(self.list_url, self._payload(at(self.day, 10)), format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_inactive_service_returns_not_found(self) -> None:
        self.service.is_active = False
        self.service.save()
        self.client.force_authenticate(self.client_user)

        response = self.client.post(self.list_url, self._payload(at(self.day, 10)), format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_taken_slot_is_rejected(self) -> None:
        self._book(10)
        response = self.client.post(self.list_url, self._payload(at(self.day, 11)), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["detail"], "selected time slot is not available")
        self.assertEqual(Booking.objects.count(), 1)

    def test_back_to_back_bookings_are_allowed(self) -> None:
        self._book(10)
        response = self.client.post(self.list_url, self._payload(at(self.day, 12)), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

    def test_start_outside_working_hours_is_rejected(self) -> None:
        self.client.force_authenticate(self.client_user)
        response = self.client.post(self.list_url, self._payload(at(self.day, 16)), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class BookingDecisionTests(BookingTestMixin, APITestCase):
    def test_freelancer_cannot_accept_unpaid_booking(self) -> None:
        booking = self._book()
        self.client.force_authenticate(self.freelancer)

        response = self.client.post(reverse("booking-accept", args=[booking.id]))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.PENDING)

    def test_freelancer_accepts_paid_booking(self) -> None:
        booking = self._pay(self._book())
        self.client.force_authenticate(self.freelancer)

        response = self.client.post(reverse("booking-accept", args=[booking.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.CONFIRMED)
        self.assertIsNone(booking.expires_at)
        self.assertTrue(
            Notification.objects.filter(user=self.client_user, notification_type=Notification.Type.BOOKING_ACCEPTED).exists()
        )

    def test_client_cannot_accept(self) -> None:
        booking = self._pay(self._book())
        response = self.client.post(reverse("booking-accept", args=[booking.id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_decline_refunds_paid_booking(self) -> None:
        booking = self._pay(self._book())
        self.client.force_authenticate(self.freelancer)

        response = self.client.post(
            reverse("booking-decline", args=[booking.id]),
            {"reason": "Fully booked that week"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.CANCELLED)
        self.assertEqual(booking.declined_reason, "Fully booked that week")
        self.assertEqual(booking.payment_status, Booking.PaymentStatus.REFUNDED)
        self.assertEqual(Payment.objects.get(booking=booking).escrow_status, Payment.EscrowStatus.REFUNDED)

    def test_other_freelancer_cannot_see_booking(self) -> None:
        booking = self._book()
        stranger = User.objects.create_user(
            email="stranger@example.com",
            password="Stranger123",
            role=User.RoleChoices.FREELANCER,
        )
        self.client.force_authenticate(stranger)

        response = self.client.get(reverse("booking-detail", args=[booking.id]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class BookingCancellationTests(BookingTestMixin, APITestCase):
    def test_client_cancel_a_week_ahead_gets_full_refund(self) -> None:
        booking = self._pay(self._book())

        response = self.client.post(
            reverse("booking-cancel", args=[booking.id]),
            {"reason": "Change of plans"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["refund_percentage"], 100)
        self.assertEqual(response.data["refund_amount_pence"], 10000)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.CANCELLED)
        self.assertEqual(booking.cancelled_by, Booking.CancelledBy.CLIENT)
        self.assertEqual(booking.payment_status, Booking.PaymentStatus.REFUNDED)

    def test_cancel_unpaid_booking_records_no_refund(self) -> None:
        booking = self._book()

        response = self.client.post(reverse("booking-cancel", args=[booking.id]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["refund_amount_pence"], 0)
        booking.refresh_from_db()
        self.assertEqual(booking.refund_amount_pence, 0)

    def test_freelancer_cancel_is_tracked(self) -> None:
        booking = self._pay(self._book())
        self.client.force_authenticate(self.freelancer)

        response = self.client.post(reverse("booking-cancel", args=[booking.id]), {"reason": "Ill"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["refund_percentage"], 100)
        record = FreelancerCancellation.objects.get(booking=booking)
        self.assertFalse(record.is_last_minute)

    def test_cancelled_booking_cannot_be_cancelled_again(self) -> None:
        booking = self._book()
        self.client.post(reverse("booking-cancel", args=[booking.id]), {}, format="json")

        response = self.client.post(reverse("booking-cancel", args=[booking.id]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancelled_booking_frees_the_slot(self) -> None:
        booking = self._book()
        self.client.post(reverse("booking-cancel", args=[booking.id]), {}, format="json")

        response = self.client.post(self.list_url, self._payload(at(self.day, 10)), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)


class RescheduleTests(BookingTestMixin, APITestCase):
    def test_accepted_reschedule_moves_booking(self) -> None:
        booking = self._pay(self._book())
        new_start = at(self.day, 14)
        response = self.client.post(
            reverse("booking-reschedule", args=[booking.id]),
            {
                "new_start_datetime": new_start.isoformat(),
                "new_end_datetime": (new_start + timedelta(hours=2)).isoformat(),
                "reason": "Work meeting",
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        request_id = response.data["id"]

        self.client.force_authenticate(self.freelancer)
        response = self.client.post(
            reverse("booking-reschedule-respond", args=[booking.id, request_id]),
            {"accept": True},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        booking.refresh_from_db()
        self.assertEqual(booking.start_datetime, new_start)
        self.assertEqual(RescheduleRequest.objects.get().status, RescheduleRequest.Status.ACCEPTED)

    def test_reschedule_to_the_past_is_rejected(self) -> None:
        booking = self._book()
        new_start = timezone.now() - timedelta(hours=2)

        response = self.client.post(
            reverse("booking-reschedule", args=[booking.id]),
            {
                "new_start_datetime": new_start.isoformat(),
                "new_end_datetime": (new_start + timedelta(hours=2)).isoformat(),
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(RescheduleRequest.objects.exists())

    def test_closed_booking_cannot_be_rescheduled(self) -> None:
        booking = self._book()
        Booking.objects.filter(pk=booking.pk).update(status=Booking.Status.COMPLETED)
        new_start = at(self.day, 14)

        response = self.client.post(
            reverse("booking-reschedule", args=[booking.id]),
            {
                "new_start_datetime": new_start.isoformat(),
                "new_end_datetime": (new_start + timedelta(hours=2)).isoformat(),
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Only confirmed or pending bookings can be rescheduled.")

    def test_second_pending_request_conflicts(self) -> None:
        booking = self._book()
        new_start = at(self.day, 14)
        payload = {
            "new_start_datetime": new_start.isoformat(),
            "new_end_datetime": (new_start + timedelta(hours=2)).isoformat(),
        }
        url = reverse("booking-reschedule", args=[booking.id])
        self.assertEqual(self.client.post(url, payload, format="json").status_code, status.HTTP_201_CREATED)

        response = self.client.post(url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_requester_cannot_answer_own_request(self) -> None:
        booking = self._book()
        new_start = at(self.day, 14)
        response = self.client.post(
            reverse("booking-reschedule", args=[booking.id]),
            {
                "new_start_datetime": new_start.isoformat(),
                "new_end_datetime": (new_start + timedelta(hours=2)).isoformat(),
            },
            format="json",
        )

        response = self.client.post(
            reverse("booking-reschedule-respond", args=[booking.id, response.data["id"]]),
            {"accept": True},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_declined_reschedule_offers_refund_a_week_ahead(self) -> None:
        booking = self._pay(self._book())
        new_start = at(self.day, 14)
        response = self.client.post(
            reverse("booking-reschedule", args=[booking.id]),
            {
                "new_start_datetime": new_start.isoformat(),
                "new_end_datetime": (new_start + timedelta(hours=2)).isoformat(),
            },
            format="json",
        )
        self.client.force_authenticate(self.freelancer)

        response = self.client.post(
            reverse("booking-reschedule-respond", args=[booking.id, response.data["id"]]),
            {"accept": False, "note": "Not free then"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["refund_offer"]["refund_percentage"], 100)
        booking.refresh_from_db()
        self.assertEqual(booking.start_datetime, at(self.day, 10))


class BookingListingTests(BookingTestMixin, APITestCase):
    def test_client_and_freelancer_see_the_booking(self) -> None:
        booking = self._book()

        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)

        self.client.force_authenticate(self.freelancer)
        response = self.client.get(self.list_url, {"upcoming": "true"})
        self.assertEqual(response.data["results"][0]["id"], booking.id)

    def test_audit_log_lists_transitions(self) -> None:
        booking = self._pay(self._book())

        response = self.client.get(reverse("booking-audit-log", args=[booking.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([entry["action"] for entry in response.data], ["created", "payment_succeeded"])

    def test_stats_count_by_status(self) -> None:
        self._book(10)
        cancelled = self._book(13)
        self.client.post(reverse("booking-cancel", args=[cancelled.id]), {}, format="json")

        response = self.client.get(reverse("booking-stats"))

        self.assertEqual(response.data["by_status"]["pending"], 1)
        self.assertEqual(response.data["by_status"]["cancelled"], 1)
        self.assertEqual(response.data["upcoming"], 1)


class BookingTaskTests(BookingTestMixin, APITestCase):
    def test_expired_hold_refunds_paid_booking(self) -> None:
        booking = self._pay(self._book())
        Booking.objects.filter(pk=booking.pk).update(expires_at=timezone.now() - timedelta(minutes=1))

        result = expire_pending_bookings()

        self.assertEqual(result, {"expired": 1})
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.EXPIRED)
        self.assertEqual(booking.payment_status, Booking.PaymentStatus.REFUNDED)

    def test_started_bookings_move_in_progress(self) -> None:
        booking = self._pay(self._book())
        booking.mark_confirmed()
        Booking.objects.filter(pk=booking.pk).update(
            start_datetime=timezone.now() - timedelta(minutes=5),
            end_datetime=timezone.now() + timedelta(minutes=115),
        )

        result = start_due_bookings()

        self.assertEqual(result, {"started": 1})
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.IN_PROGRESS)
