"""Tests for saving favorite freelancers."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.favorites.models import FavoriteFreelancer
from apps.users.models import User


class FavoriteFreelancerAPITests(APITestCase):
    def setUp(self) -> None:
        self.client_user = User.objects.create_user(email="client@example.com", password="ClientPass123")
        self.freelancer = User.objects.create_user(
            email="stylist@example.com",
            password="StylistPass123",
            role=User.RoleChoices.FREELANCER,
        )
        self.toggle_url = reverse("favorite-toggle")
        self.client.force_authenticate(self.client_user)

    def test_toggle_adds_then_removes(self) -> None:
        added = self.client.post(self.toggle_url, {"freelancer_id": self.freelancer.id}, format="json")
        self.assertEqual(added.status_code, status.HTTP_201_CREATED, added.data)
        self.assertTrue(added.data["is_favorite"])
        self.assertEqual(self.client.get(reverse("favorite-list")).data["count"], 1)

        removed = self.client.post(self.toggle_url, {"freelancer_id": self.freelancer.id}, format="json")
        self.assertEqual(removed.status_code, status.HTTP_200_OK)
        self.assertFalse(removed.data["is_favorite"])
        self.assertFalse(FavoriteFreelancer.objects.exists())

    def test_toggle_rejects_non_freelancer(self) -> None:
        other_client = User.objects.create_user(email="other@example.com", password="OtherPass123")
        response = self.client.post(self.toggle_url, {"freelancer_id": other_client.id}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_only_own_favorite(self) -> None:
        other_client = User.objects.create_user(email="other@example.com", password="OtherPass123")
        theirs = FavoriteFreelancer.objects.create(client=other_client, freelancer=self.freelancer)
        mine = FavoriteFreelancer.objects.create(client=self.client_user, freelancer=self.freelancer)

        self.assertEqual(
            self.client.delete(reverse("favorite-detail", args=[theirs.id])).status_code,
            status.HTTP_404_NOT_FOUND,
        )
        self.assertEqual(
            self.client.delete(reverse("favorite-detail", args=[mine.id])).status_code,
            status.HTTP_204_NO_CONTENT,
        )

    def test_freelancers_cannot_keep_favorites(self) -> None:
        self.client.force_authenticate(self.freelancer)
        response = self.client.get(reverse("favorite-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
