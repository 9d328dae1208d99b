"""Catalog models: style taxonomy, services and packages."""

from __future__ import annotations

from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore
from mptt.models import MPTTModel, TreeForeignKey  # type: ignore

from shared.domain.value_objects import percent_of


class Style(MPTTModel):
    """Hierarchical style taxonomy: root nodes are categories (Braids,
    Locs, Nails), children are concrete styles (Knotless, Box braids)."""

    name = models.CharField(_("Name"), max_length=120)
    slug = models.SlugField(_("Slug"), max_length=140, unique=True)
    parent = TreeForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="children",
    )
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class MPTTMeta:
        order_insertion_by = ["name"]

    class Meta:
        verbose_name = _("Style")
        verbose_name_plural = _("Styles")
        ordering = ["tree_id", "lft"]

    def __str__(self) -> str:
        if self.parent_id:
            return f"{self.parent.name} / {self.name}"
        return self.name

    @property
    def is_category(self) -> bool:
        return self.parent_id is None


class Service(models.Model):
    """A bookable service offered by one freelancer."""

    class LocationType(models.TextChoices):
        CLIENT_TRAVELS = "client_travels_to_freelancer", _("Client travels to freelancer")
        FREELANCER_TRAVELS = "freelancer_travels_to_client", _("Freelancer travels to client")

    class MaterialsPolicy(models.TextChoices):
        CLIENT_PROVIDES = "client_provides", _("Client provides materials")
        FREELANCER_PROVIDES = "freelancer_provides", _("Freelancer provides materials")
        BOTH = "both", _("Either")

    freelancer = models.ForeignKey(
        "users.CustomUser",
        on_delete=models.CASCADE,
        related_name="services",
    )
    style = models.ForeignKey(
        Style,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="services",
    )
    name = models.CharField(_("Name"), max_length=200)
    description = models.TextField(blank=True)
    duration_minutes = models.PositiveIntegerField(
        validators=[MinValueValidator(15), MaxValueValidator(24 * 60)],
    )
    base_price_pence = models.PositiveIntegerField()
    studio_price_pence = models.PositiveIntegerField(null=True, blank=True)
    mobile_price_pence = models.PositiveIntegerField(null=True, blank=True)
    materials_fee_pence = models.PositiveIntegerField(default=0)
    materials_policy = models.CharField(
        max_length=32,
        choices=MaterialsPolicy.choices,
        default=MaterialsPolicy.CLIENT_PROVIDES,
    )
    materials_description = models.TextField(blank=True)
    travel_fee_pence = models.PositiveIntegerField(default=0)
    location_types = models.JSONField(default=list)
    is_active = models.BooleanField(default=True)
    deactivated_by_admin = models.BooleanField(default=False)
    moderation_note = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Service")
        verbose_name_plural = _("Services")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["freelancer", "is_active"]),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.freelancer_id})"

    def supports(self, location_type: str) -> bool:
        return location_type in (self.location_types or [])

    def price_for(self, location_type: str) -> int:
        """Service price for the chosen location, falling back to the base price."""
        if location_type == self.LocationType.CLIENT_TRAVELS and self.studio_price_pence is not None:
            return self.studio_price_pence
        if location_type == self.LocationType.FREELANCER_TRAVELS and self.mobile_price_pence is not None:
            return self.mobile_price_pence
        return self.base_price_pence

    def activate(self) -> None:
        self.is_active = True
        self.deactivated_by_admin = False
        self.moderation_note = ""
        self.save(update_fields=["is_active", "deactivated_by_admin", "moderation_note", "updated_at"])

    def deactivate(self, *, by_admin: bool = False, note: str = "") -> None:
        self.is_active = False
        self.deactivated_by_admin = by_admin
        self.moderation_note = note
        self.save(update_fields=["is_active", "deactivated_by_admin", "moderation_note", "updated_at"])


class ServicePackage(models.Model):
    """A bundle of a freelancer's services sold at a discount."""

    MIN_SERVICES = 2
    MAX_SERVICES = 10

    freelancer = models.ForeignKey(
        "users.CustomUser",
        on_delete=models.CASCADE,
        related_name="service_packages",
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    services = models.ManyToManyField(
        Service,
        through="ServicePackageItem",
        related_name="packages",
    )
    discount_percent = models.PositiveSmallIntegerField(
        default=0,
        validators=[MaxValueValidator(50)],
    )
    discount_amount_pence = models.PositiveIntegerField(default=0)
    valid_until = models.DateField(null=True, blank=True)
    max_uses = models.PositiveIntegerField(null=True, blank=True)
    times_used = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Service package")
        verbose_name_plural = _("Service packages")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.name

    def ordered_services(self) -> list[Service]:
        return [item.service for item in self.items.select_related("service").order_by("position")]

    def price_summary(self) -> dict[str, int]:
        """Sum of base prices, less the percentage discount, less the
        fixed discount, never below zero."""
        original = sum(service.base_price_pence for service in self.ordered_services())
        percent_discount = percent_of(original, self.discount_percent)
        final = max(original - percent_discount - self.discount_amount_pence, 0)
        return {
            "original_price_pence": original,
            "percent_discount_pence": percent_discount,
            "fixed_discount_pence": self.discount_amount_pence,
            "final_price_pence": final,
            "savings_pence": original - final,
        }


class ServicePackageItem(models.Model):
    package = models.ForeignKey(ServicePackage, on_delete=models.CASCADE, related_name="items")
    service = models.ForeignKey(Service, on_delete=models.CASCADE, related_name="package_items")
    position = models.PositiveSmallIntegerField(default=0)

    class Meta:
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(fields=["package", "service"], name="unique_service_per_package"),
        ]
