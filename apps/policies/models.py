"""Cancellation and reliability policy models."""

from __future__ import annotations

from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class CancellationPolicy(models.Model):
    """Refund tier: cancelling at least ``hours_threshold`` hours before the
    appointment refunds ``refund_percentage`` of the booking total."""

    class PolicyType(models.TextChoices):
        CLIENT_CANCEL = "client_cancel", _("Client cancellation")

    policy_type = models.CharField(
        max_length=32,
        choices=PolicyType.choices,
        default=PolicyType.CLIENT_CANCEL,
    )
    hours_threshold = models.PositiveIntegerField(unique=True)
    refund_percentage = models.PositiveSmallIntegerField(validators=[MaxValueValidator(100)])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Cancellation policy")
        verbose_name_plural = _("Cancellation policies")
        ordering = ["-hours_threshold"]

    def __str__(self) -> str:
        return f">= {self.hours_threshold}h: {self.refund_percentage}%"

    @property
    def label(self) -> str:
        return f"{self.policy_type}_{self.hours_threshold}h_{self.refund_percentage}pct"


class ReliabilityConfig(models.Model):
    """Singleton with the last-minute cancellation thresholds."""

    warning_threshold = models.PositiveIntegerField(default=2, validators=[MinValueValidator(1)])
    suspension_threshold = models.PositiveIntegerField(default=5, validators=[MinValueValidator(1)])
    time_window_days = models.PositiveIntegerField(default=30, validators=[MinValueValidator(1)])
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Reliability configuration")
        verbose_name_plural = _("Reliability configuration")

    def __str__(self) -> str:
        return (
            f"warn at {self.warning_threshold}, suspend at {self.suspension_threshold} "
            f"within {self.time_window_days} days"
        )

    @classmethod
    def load(cls) -> "ReliabilityConfig":
        config, _ = cls.objects.get_or_create(pk=1)
        return config


class FreelancerCancellation(models.Model):
    """A booking the freelancer cancelled, for reliability tracking."""

    freelancer = models.ForeignKey(
        "users.CustomUser",
        on_delete=models.CASCADE,
        related_name="cancellation_records",
    )
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="freelancer_cancellations",
    )
    hours_before_service = models.IntegerField()
    is_last_minute = models.BooleanField(default=False)
    cancelled_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Freelancer cancellation")
        verbose_name_plural = _("Freelancer cancellations")
        ordering = ["-cancelled_at"]
        indexes = [
            models.Index(fields=["freelancer", "cancelled_at"]),
        ]

    def __str__(self) -> str:
        return f"Cancellation by {self.freelancer_id} ({self.hours_before_service}h before)"
