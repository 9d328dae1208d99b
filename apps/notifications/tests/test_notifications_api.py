"""Tests for in-app notifications, email mirroring and reminders."""

from __future__ import annotations

from datetime import timedelta
from unittest import mock

from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.catalog.models import Service, Style
from apps.notifications.models import Notification
from apps.notifications.services import notify_admins, send_notification
from apps.notifications.tasks import send_booking_reminders
from apps.users.models import User


class NotificationServiceTests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(email="client@example.com", password="ClientPass123")

    def test_send_notification_with_email(self) -> None:
        notification = send_notification(
            self.user,
            Notification.Type.SYSTEM,
            "Welcome",
            "Thanks for joining",
            {"source": "signup"},
            email=True,
        )

        self.assertEqual(notification.data, {"source": "signup"})
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, "Welcome")

    def test_email_failure_keeps_in_app_row(self) -> None:
        with mock.patch("apps.notifications.services.send_mail", side_effect=OSError("smtp down")):
            send_notification(self.user, Notification.Type.SYSTEM, "Hello", "Body", email=True)

        self.assertEqual(Notification.objects.filter(user=self.user).count(), 1)

    def test_notify_admins(self) -> None:
        User.objects.create_user(email="admin@example.com", password="AdminPass123", role=User.RoleChoices.ADMIN)
        self.assertEqual(notify_admins(Notification.Type.SYSTEM, "Heads up", "Check the queue"), 1)


class NotificationAPITests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(email="client@example.com", password="ClientPass123")
        self.other = User.objects.create_user(email="other@example.com", password="OtherPass123")
        self.first = send_notification(self.user, Notification.Type.SYSTEM, "One", "First")
        self.second = send_notification(self.user, Notification.Type.SYSTEM, "Two", "Second")
        send_notification(self.other, Notification.Type.SYSTEM, "Theirs", "Not yours")
        self.client.force_authenticate(self.user)

    def test_list_is_scoped_and_filterable(self) -> None:
        self.assertEqual(self.client.get(reverse("notification-list")).data["count"], 2)

        self.client.post(reverse("notification-mark-read", args=[self.first.id]))

        unread = self.client.get(reverse("notification-list"), {"unread": "true"})
        self.assertEqual(unread.data["count"], 1)
        self.assertEqual(self.client.get(reverse("notification-unread-count")).data, {"unread_count": 1})

    def test_mark_all_read_and_clear(self) -> None:
        response = self.client.post(reverse("notification-mark-all-read"))
        self.assertEqual(response.data, {"updated": 2})

        response = self.client.post(reverse("notification-clear-read"))
        self.assertEqual(response.data, {"deleted": 2})
        self.assertEqual(Notification.objects.filter(user=self.other).count(), 1)

    def test_other_users_notification_is_hidden(self) -> None:
        theirs = Notification.objects.get(user=self.other)
        response = self.client.post(reverse("notification-mark-read", args=[theirs.id]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class BookingReminderTaskTests(APITestCase):
    def setUp(self) -> None:
        self.client_user = User.objects.create_user(email="client@example.com", password="ClientPass123")
        self.freelancer = User.objects.create_user(
            email="stylist@example.com",
            password="StylistPass123",
            role=User.RoleChoices.FREELANCER,
        )
        self.service = Service.objects.create(
            freelancer=self.freelancer,
            style=Style.objects.create(name="Nails", slug="nails"),
            name="Pedicure",
            duration_minutes=60,
            base_price_pence=3000,
            location_types=[Service.LocationType.CLIENT_TRAVELS],
        )

    def _booking(self, hours_ahead: int, status_=Booking.Status.CONFIRMED) -> Booking:
        start = timezone.now() + timedelta(hours=hours_ahead)
        return Booking.objects.create(
            client=self.client_user,
            freelancer=self.freelancer,
            service=self.service,
            start_datetime=start,
            end_datetime=start + timedelta(hours=1),
            location_type=Service.LocationType.CLIENT_TRAVELS,
            status=status_,
        )

    def test_reminds_confirmed_bookings_within_a_day_once(self) -> None:
        soon = self._booking(5)
        self._booking(30)
        self._booking(5, Booking.Status.PENDING)

        self.assertEqual(send_booking_reminders(), {"sent": 1})
        self.assertEqual(send_booking_reminders(), {"sent": 0})

        soon.refresh_from_db()
        self.assertIsNotNone(soon.reminder_sent_at)
        reminders = Notification.objects.filter(notification_type=Notification.Type.BOOKING_REMINDER)
        self.assertEqual(set(reminders.values_list("user", flat=True)), {self.client_user.id, self.freelancer.id})
