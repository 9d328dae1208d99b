"""Tests for weekly availability, exceptions and slot generation."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.availability.models import AvailabilityException, AvailabilityRule, AvailabilitySettings
from apps.availability.slots import generate_available_slots, is_slot_available, js_weekday, slots_for_service
from apps.bookings.models import Booking
from apps.catalog.models import Service, Style
from apps.users.models import User

DAY = date(2030, 6, 3)


def local(day: date, hour: int, minute: int = 0) -> datetime:
    return timezone.make_aware(datetime.combine(day, time(hour, minute)), timezone.get_default_timezone())


class SlotGenerationTests(APITestCase):
    def setUp(self) -> None:
        self.freelancer = User.objects.create_user(
            email="stylist@example.com",
            password="StylistPass123",
            role=User.RoleChoices.FREELANCER,
        )
        self.client_user = User.objects.create_user(email="client@example.com", password="ClientPass123")
        self.service = Service.objects.create(
            freelancer=self.freelancer,
            style=Style.objects.create(name="Hair", slug="hair"),
            name="Blow dry",
            duration_minutes=60,
            base_price_pence=3500,
            location_types=[Service.LocationType.CLIENT_TRAVELS],
        )
        AvailabilityRule.objects.create(
            freelancer=self.freelancer,
            day_of_week=js_weekday(DAY),
            start_time=time(9),
            end_time=time(12),
        )
        self.now = local(DAY, 0) - timedelta(days=7)

    def _book(self, hour: int, status_=Booking.Status.CONFIRMED) -> Booking:
        return Booking.objects.create(
            client=self.client_user,
            freelancer=self.freelancer,
            service=self.service,
            start_datetime=local(DAY, hour),
            end_datetime=local(DAY, hour + 1),
            location_type=Service.LocationType.CLIENT_TRAVELS,
            status=status_,
        )

    def test_js_weekday_counts_from_sunday(self) -> None:
        self.assertEqual(js_weekday(date(2030, 6, 2)), 0)
        self.assertEqual(js_weekday(date(2030, 6, 8)), 6)

    def test_slots_step_through_the_window(self) -> None:
        result = generate_available_slots(self.freelancer, DAY, 60, now=self.now)

        self.assertEqual(len(result.slots), 9)
        self.assertEqual(result.slots[0], local(DAY, 9))
        self.assertEqual(result.slots[-1], local(DAY, 11))
        self.assertIsNone(result.reason)

    def test_no_rules_for_day(self) -> None:
        result = generate_available_slots(self.freelancer, DAY + timedelta(days=1), 60, now=self.now)
        self.assertEqual(result.slots, [])
        self.assertEqual(result.reason, "no_rules")

    def test_booking_blocks_overlapping_starts(self) -> None:
        self._book(10)

        result = generate_available_slots(self.freelancer, DAY, 60, now=self.now)

        self.assertEqual(result.slots, [local(DAY, 9), local(DAY, 11)])

    def test_cancelled_booking_frees_the_slot(self) -> None:
        self._book(10, Booking.Status.CANCELLED)
        self.assertEqual(len(generate_available_slots(self.freelancer, DAY, 60, now=self.now).slots), 9)

    def test_buffer_widens_bookings(self) -> None:
        self._book(10)

        result = generate_available_slots(self.freelancer, DAY, 60, buffer_minutes=15, now=self.now)

        self.assertEqual(result.slots, [])
        self.assertEqual(result.reason, "fully_booked")

    def test_blocked_exception(self) -> None:
        AvailabilityException.objects.create(
            freelancer=self.freelancer,
            date=DAY,
            start_time=time(9),
            end_time=time(10),
            exception_type=AvailabilityException.ExceptionType.BLOCKED,
        )
        result = generate_available_slots(self.freelancer, DAY, 60, now=self.now)
        self.assertEqual(result.slots[0], local(DAY, 10))

        AvailabilityException.objects.create(
            freelancer=self.freelancer,
            date=DAY,
            exception_type=AvailabilityException.ExceptionType.BLOCKED,
        )
        result = generate_available_slots(self.freelancer, DAY, 60, now=self.now)
        self.assertEqual(result.reason, "fully_booked")

    def test_lead_time_and_daily_cap(self) -> None:
        result = generate_available_slots(self.freelancer, DAY, 60, min_lead_time_hours=2, now=local(DAY, 8))
        self.assertEqual(result.slots[0], local(DAY, 10))

        self._book(9)
        result = generate_available_slots(self.freelancer, DAY, 60, max_bookings_per_day=1, now=self.now)
        self.assertEqual(result.reason, "max_bookings_reached")

    def test_slot_match_tolerates_seconds(self) -> None:
        self.assertTrue(is_slot_available(self.service, local(DAY, 9) + timedelta(seconds=30), now=self.now))
        self.assertFalse(is_slot_available(self.service, local(DAY, 9, 5), now=self.now))

    def test_service_slots_apply_freelancer_settings(self) -> None:
        AvailabilitySettings.objects.create(freelancer=self.freelancer, buffer_minutes=30)
        self._book(10)
        self.assertEqual(slots_for_service(self.service, DAY, now=self.now).slots, [])

    def test_public_slots_endpoint(self) -> None:
        response = self.client.get(reverse("availability-slots"), {"service": self.service.id, "date": DAY.isoformat()})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["duration_minutes"], 60)
        self.assertEqual(len(response.data["slots"]), 9)


class FreelancerScheduleAPITests(APITestCase):
    def setUp(self) -> None:
        self.freelancer = User.objects.create_user(
            email="stylist@example.com",
            password="StylistPass123",
            role=User.RoleChoices.FREELANCER,
        )
        self.client.force_authenticate(self.freelancer)

    def test_put_replaces_weekly_rules(self) -> None:
        AvailabilityRule.objects.create(freelancer=self.freelancer, day_of_week=1, start_time=time(8), end_time=time(9))

        response = self.client.put(
            reverse("availability-rules"),
            {
                "rules": [
                    {"day_of_week": 2, "start_time": "09:00", "end_time": "13:00"},
                    {"day_of_week": 2, "start_time": "14:00", "end_time": "18:00"},
                ]
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(len(response.data["rules"]), 2)
        self.assertFalse(AvailabilityRule.objects.filter(day_of_week=1).exists())

    def test_overlapping_rules_are_rejected(self) -> None:
        response = self.client.put(
            reverse("availability-rules"),
            {
                "rules": [
                    {"day_of_week": 3, "start_time": "09:00", "end_time": "13:00"},
                    {"day_of_week": 3, "start_time": "12:00", "end_time": "15:00"},
                ]
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_exception_needs_both_times_or_neither(self) -> None:
        url = reverse("availability-exception-list")
        bad = self.client.post(url, {"date": "2030-06-03", "start_time": "09:00", "exception_type": "blocked"}, format="json")
        good = self.client.post(url, {"date": "2030-06-03", "exception_type": "blocked", "reason": "Holiday"}, format="json")

        self.assertEqual(bad.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(good.status_code, status.HTTP_201_CREATED, good.data)

    def test_settings_patch(self) -> None:
        response = self.client.patch(reverse("availability-settings"), {"buffer_minutes": 15}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["buffer_minutes"], 15)

        response = self.client.patch(reverse("availability-settings"), {"max_bookings_per_day": 0}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_clients_cannot_edit_schedule(self) -> None:
        client_user = User.objects.create_user(email="client@example.com", password="ClientPass123")
        self.client.force_authenticate(client_user)
        self.assertEqual(self.client.get(reverse("availability-rules")).status_code, status.HTTP_403_FORBIDDEN)
