"""API tests for services and packages."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Service, ServicePackage, Style
from apps.users.models import FreelancerProfile, User

CLIENT_TRAVELS = Service.LocationType.CLIENT_TRAVELS
FREELANCER_TRAVELS = Service.LocationType.FREELANCER_TRAVELS


class ServiceAPITests(APITestCase):
    def setUp(self) -> None:
        self.freelancer = User.objects.create_user(
            email="stylist@example.com",
            password="Secret12345",
            role=User.RoleChoices.FREELANCER,
        )
        FreelancerProfile.objects.create(user=self.freelancer, city="Manchester")
        self.other = User.objects.create_user(
            email="other@example.com",
            password="Secret12345",
            role=User.RoleChoices.FREELANCER,
        )
        self.admin = User.objects.create_user(
            email="admin@example.com",
            password="Secret12345",
            role=User.RoleChoices.ADMIN,
        )
        self.braids = Style.objects.create(name="Braids", slug="braids")
        self.knotless = Style.objects.create(name="Knotless", slug="knotless", parent=self.braids)
        self.list_url = reverse("service-list")

    def _payload(self, **overrides) -> dict:
        payload = {
            "name": "Knotless braids",
            "style": self.knotless.id,
            "duration_minutes": 240,
            "studio_price_pence": 12000,
            "location_types": [CLIENT_TRAVELS],
        }
        payload.update(overrides)
        return payload

    def _service(self, **overrides) -> Service:
        fields = {
            "freelancer": self.freelancer,
            "style": self.knotless,
            "name": "Box braids",
            "duration_minutes": 180,
            "base_price_pence": 9000,
            "studio_price_pence": 9000,
            "location_types": [CLIENT_TRAVELS],
        }
        fields.update(overrides)
        return Service.objects.create(**fields)

    def test_freelancer_creates_service_with_base_from_studio_price(self) -> None:
        self.client.force_authenticate(self.freelancer)
        response = self.client.post(self.list_url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["base_price_pence"], 12000)
        self.assertEqual(response.data["freelancer"], self.freelancer.id)

    def test_mobile_service_requires_mobile_price(self) -> None:
        self.client.force_authenticate(self.freelancer)
        response = self.client.post(
            self.list_url,
            self._payload(location_types=[FREELANCER_TRAVELS]),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("mobile_price_pence", response.data)

    def test_empty_location_types_rejected(self) -> None:
        self.client.force_authenticate(self.freelancer)
        response = self.client.post(self.list_url, self._payload(location_types=[]), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_client_cannot_create_service(self) -> None:
        client_user = User.objects.create_user(email="client@example.com", password="Secret12345")
        self.client.force_authenticate(client_user)
        response = self.client.post(self.list_url, self._payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_suspended_freelancer_cannot_create_service(self) -> None:
        self.freelancer.suspend("Fraud check")
        self.client.force_authenticate(self.freelancer)
        response = self.client.post(self.list_url, self._payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_public_list_hides_inactive_and_filters(self) -> None:
        self._service(name="Visible")
        self._service(name="Hidden", is_active=False)
        self._service(
            name="Mobile",
            location_types=[FREELANCER_TRAVELS],
            mobile_price_pence=15000,
            base_price_pence=15000,
            studio_price_pence=None,
        )

        response = self.client.get(self.list_url)
        names = {row["name"] for row in response.data["results"]}
        self.assertEqual(names, {"Visible", "Mobile"})

        response = self.client.get(self.list_url, {"location_type": FREELANCER_TRAVELS})
        self.assertEqual([row["name"] for row in response.data["results"]], ["Mobile"])

        response = self.client.get(self.list_url, {"style": self.braids.id, "price_max": 10000})
        self.assertEqual([row["name"] for row in response.data["results"]], ["Visible"])

        response = self.client.get(self.list_url, {"city": "manchester"})
        self.assertEqual(len(response.data["results"]), 2)

    def test_other_freelancer_cannot_edit(self) -> None:
        service = self._service()
        self.client.force_authenticate(self.other)
        response = self.client.patch(
            reverse("service-detail", args=[service.id]), {"name": "Mine now"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_duplicate_creates_inactive_copy(self) -> None:
        service = self._service()
        self.client.force_authenticate(self.freelancer)
        response = self.client.post(reverse("service-duplicate", args=[service.id]))

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertFalse(response.data["is_active"])
        self.assertEqual(response.data["name"], "Box braids (copy)")
        self.assertEqual(Service.objects.filter(freelancer=self.freelancer).count(), 2)

    def test_admin_deactivation_blocks_owner_reactivation(self) -> None:
        service = self._service()
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            reverse("service-admin-deactivate", args=[service.id]),
            {"reason": "Misleading photos"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)

        self.client.force_authenticate(self.freelancer)
        response = self.client.post(reverse("service-activate", args=[service.id]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(self.freelancer.notifications.filter(title="Service Deactivated").exists())


class ServicePackageAPITests(APITestCase):
    def setUp(self) -> None:
        self.freelancer = User.objects.create_user(
            email="nails@example.com",
            password="Secret12345",
            role=User.RoleChoices.FREELANCER,
        )
        self.services = [
            Service.objects.create(
                freelancer=self.freelancer,
                name=name,
                duration_minutes=60,
                base_price_pence=price,
                studio_price_pence=price,
                location_types=[CLIENT_TRAVELS],
            )
            for name, price in [("Gel manicure", 3000), ("Pedicure", 3500), ("Nail art", 1999)]
        ]
        self.client.force_authenticate(self.freelancer)

    def test_create_package_and_price_summary(self) -> None:
        response = self.client.post(
            reverse("package-list"),
            {
                "name": "Full set",
                "service_ids": [s.id for s in self.services],
                "discount_percent": 10,
                "discount_amount_pence": 500,
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

        summary = response.data["price_summary"]
        self.assertEqual(summary["original_price_pence"], 8499)
        self.assertEqual(summary["percent_discount_pence"], 850)
        self.assertEqual(summary["final_price_pence"], 8499 - 850 - 500)
        self.assertEqual([s["name"] for s in response.data["services"]], ["Gel manicure", "Pedicure", "Nail art"])

    def test_package_needs_two_services(self) -> None:
        response = self.client.post(
            reverse("package-list"),
            {"name": "Single", "service_ids": [self.services[0].id]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_discount_over_fifty_rejected(self) -> None:
        response = self.client.post(
            reverse("package-list"),
            {"name": "Too cheap", "service_ids": [s.id for s in self.services[:2]], "discount_percent": 60},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cannot_bundle_someone_elses_service(self) -> None:
        stranger = User.objects.create_user(
            email="stranger@example.com", password="Secret12345", role=User.RoleChoices.FREELANCER
        )
        foreign = Service.objects.create(
            freelancer=stranger,
            name="Foreign",
            duration_minutes=60,
            base_price_pence=1000,
            location_types=[CLIENT_TRAVELS],
        )
        response = self.client.post(
            reverse("package-list"),
            {"name": "Mixed", "service_ids": [self.services[0].id, foreign.id]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_fixed_discount_floors_at_zero(self) -> None:
        package = ServicePackage.objects.create(
            freelancer=self.freelancer, name="Free", discount_amount_pence=100000
        )
        package.items.create(service=self.services[0], position=0)
        package.items.create(service=self.services[1], position=1)
        self.assertEqual(package.price_summary()["final_price_pence"], 0)
