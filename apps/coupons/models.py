"""Discount coupon model."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator, RegexValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import percent_of

COUPON_CODE_VALIDATOR = RegexValidator(
    regex=r"^[A-Z0-9_-]{3,50}$",
    message=_("Use 3-50 upper-case letters, digits, dashes or underscores."),
)


class DiscountCoupon(models.Model):
    class DiscountType(models.TextChoices):
        PERCENTAGE = "percentage", _("Percentage")
        FIXED = "fixed", _("Fixed amount")

    class ApplicableTo(models.TextChoices):
        ALL = "all", _("All users")
        NEW_USERS = "new_users", _("New users only")

    code = models.CharField(max_length=50, unique=True, validators=[COUPON_CODE_VALIDATOR])
    discount_type = models.CharField(max_length=20, choices=DiscountType.choices)
    discount_value = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text=_("Percent for percentage coupons, pence for fixed ones."),
    )
    min_booking_amount_pence = models.PositiveIntegerField(default=0)
    max_discount_amount_pence = models.PositiveIntegerField(null=True, blank=True)
    usage_limit = models.PositiveIntegerField(null=True, blank=True)
    used_count = models.PositiveIntegerField(default=0)
    valid_from = models.DateTimeField()
    valid_until = models.DateTimeField()
    applicable_to = models.CharField(max_length=20, choices=ApplicableTo.choices, default=ApplicableTo.ALL)
    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_coupons",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Discount coupon")
        verbose_name_plural = _("Discount coupons")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(valid_from__lt=models.F("valid_until")),
                name="coupon_valid_period",
            ),
        ]

    def __str__(self) -> str:
        return self.code

    @property
    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and self.used_count >= self.usage_limit

    def discount_for(self, amount_pence: int) -> int:
        if self.discount_type == self.DiscountType.PERCENTAGE:
            discount = percent_of(amount_pence, self.discount_value)
            if self.max_discount_amount_pence is not None:
                discount = min(discount, self.max_discount_amount_pence)
        else:
            discount = self.discount_value
        return min(discount, amount_pence)
