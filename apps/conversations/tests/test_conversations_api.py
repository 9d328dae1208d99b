"""API tests for client-freelancer messaging."""

from __future__ import annotations

from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.catalog.models import Service, Style
from apps.conversations.models import Conversation, Message
from apps.notifications.models import Notification
from apps.users.models import User


class ConversationAPITests(APITestCase):
    def setUp(self) -> None:
        self.client_user = User.objects.create_user(
            email="client@example.com",
            password="ClientPass123",
            first_name="Amara",
            last_name="Okafor",
        )
        self.freelancer = User.objects.create_user(
            email="stylist@example.com",
            password="StylistPass123",
            role=User.RoleChoices.FREELANCER,
        )
        self.list_url = reverse("conversation-list")
        self.client.force_authenticate(self.client_user)

    def _start(self, **extra) -> dict:
        response = self.client.post(self.list_url, {"freelancer_id": self.freelancer.id, **extra}, format="json")
        assert response.status_code in (status.HTTP_200_OK, status.HTTP_201_CREATED), response.data
        return response.data

    def test_start_with_initial_message_notifies_freelancer(self) -> None:
        data = self._start(initial_message="Hi, are you free on Saturday?")

        conversation = Conversation.objects.get(pk=data["id"])
        self.assertEqual(conversation.freelancer_unread_count, 1)
        self.assertEqual(conversation.last_message_preview, "Hi, are you free on Saturday?")
        notification = Notification.objects.get(user=self.freelancer)
        self.assertEqual(notification.notification_type, Notification.Type.MESSAGE_RECEIVED)
        self.assertTrue(notification.message.startswith("Amara Okafor: Hi"))

    def test_existing_conversation_is_returned(self) -> None:
        first = self.client.post(self.list_url, {"freelancer_id": self.freelancer.id}, format="json")
        second = self.client.post(self.list_url, {"freelancer_id": self.freelancer.id}, format="json")

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data["id"], second.data["id"])
        self.assertEqual(Conversation.objects.count(), 1)

    def test_booking_thread_is_separate(self) -> None:
        start = timezone.now() + timedelta(days=3)
        service = Service.objects.create(
            freelancer=self.freelancer,
            style=Style.objects.create(name="Nails", slug="nails"),
            name="Gel manicure",
            duration_minutes=45,
            base_price_pence=3000,
            location_types=[Service.LocationType.CLIENT_TRAVELS],
        )
        booking = Booking.objects.create(
            client=self.client_user,
            freelancer=self.freelancer,
            service=service,
            start_datetime=start,
            end_datetime=start + timedelta(minutes=45),
            location_type=Service.LocationType.CLIENT_TRAVELS,
        )
        self._start()

        data = self._start(booking_id=booking.id)

        self.assertEqual(data["booking_service_name"], "Gel manicure")
        self.assertEqual(Conversation.objects.count(), 2)

    def test_unknown_freelancer_or_foreign_booking_is_not_found(self) -> None:
        other = User.objects.create_user(email="other@example.com", password="OtherPass123")
        response = self.client.post(self.list_url, {"freelancer_id": other.id}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.client.post(
            self.list_url, {"freelancer_id": self.freelancer.id, "booking_id": 999}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_freelancer_cannot_start_conversation(self) -> None:
        self.client.force_authenticate(self.freelancer)
        response = self.client.post(self.list_url, {"freelancer_id": self.freelancer.id}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_reply_and_read_resets_unread_count(self) -> None:
        conversation_id = self._start(initial_message="Hello")["id"]
        messages_url = reverse("conversation-messages", args=[conversation_id])

        self.client.force_authenticate(self.freelancer)
        inbox = self.client.get(self.list_url)
        self.assertEqual(inbox.data["results"][0]["unread_count"], 1)
        self.assertEqual(inbox.data["results"][0]["other_user_name"], "Amara Okafor")

        response = self.client.get(messages_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([m["content"] for m in response.data["messages"]], ["Hello"])
        self.assertTrue(Message.objects.get().is_read)
        self.assertEqual(Conversation.objects.get().freelancer_unread_count, 0)

        reply = self.client.post(messages_url, {"content": "Yes, from 10am"}, format="json")
        self.assertEqual(reply.status_code, status.HTTP_201_CREATED, reply.data)
        self.assertEqual(Conversation.objects.get().client_unread_count, 1)

    def test_messages_page_backwards(self) -> None:
        conversation = Conversation.objects.create(client=self.client_user, freelancer=self.freelancer)
        ids = [
            Message.objects.create(conversation=conversation, sender=self.freelancer, content=f"Message {n}").id
            for n in range(5)
        ]
        url = reverse("conversation-messages", args=[conversation.id])

        latest = self.client.get(url, {"limit": 2})
        self.assertEqual([m["id"] for m in latest.data["messages"]], ids[3:])
        self.assertTrue(latest.data["has_more"])

        older = self.client.get(url, {"limit": 5, "before": ids[3]})
        self.assertEqual([m["id"] for m in older.data["messages"]], ids[:3])
        self.assertFalse(older.data["has_more"])

    def test_blank_message_is_rejected(self) -> None:
        conversation_id = self._start()["id"]
        response = self.client.post(
            reverse("conversation-messages", args=[conversation_id]), {"content": "   "}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_outsider_cannot_read_conversation(self) -> None:
        conversation_id = self._start(initial_message="Private")["id"]
        self.client.force_authenticate(User.objects.create_user(email="nosy@example.com", password="NosyPass123"))

        response = self.client.get(reverse("conversation-messages", args=[conversation_id]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_suspended_user_cannot_send(self) -> None:
        conversation_id = self._start()["id"]
        self.client_user.suspend("Spam")

        response = self.client.post(
            reverse("conversation-messages", args=[conversation_id]), {"content": "Hello?"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
