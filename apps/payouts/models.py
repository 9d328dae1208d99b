"""Payout domain models."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class ScheduleType(models.TextChoices):
    PER_TRANSACTION = "per_transaction", _("After every booking")
    WEEKLY = "weekly", _("Weekly (Friday)")
    BI_WEEKLY = "bi_weekly", _("Every two weeks (Friday)")


class PayoutSettings(models.Model):
    """Platform-wide payout settings (single row)."""

    platform_commission_percent = models.PositiveSmallIntegerField(
        default=15,
        validators=[MaxValueValidator(100)],
    )
    booking_fee_fixed_pence = models.PositiveIntegerField(default=0)
    auto_confirm_timeout_hours = models.PositiveIntegerField(
        default=24,
        validators=[MinValueValidator(1)],
    )
    default_payout_schedule = models.CharField(
        max_length=20,
        choices=ScheduleType.choices,
        default=ScheduleType.WEEKLY,
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payout settings")
        verbose_name_plural = _("Payout settings")

    def __str__(self) -> str:
        return f"Commission {self.platform_commission_percent}%, fee {self.booking_fee_fixed_pence}p"

    @classmethod
    def load(cls) -> "PayoutSettings":
        payout_settings, _ = cls.objects.get_or_create(
            pk=1,
            defaults={
                "auto_confirm_timeout_hours": settings.MARKETPLACE.get("AUTO_CONFIRM_HOURS", 24),
            },
        )
        return payout_settings


class PayoutSchedule(models.Model):
    freelancer = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="payout_schedule",
    )
    schedule_type = models.CharField(max_length=20, choices=ScheduleType.choices, default=ScheduleType.WEEKLY)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payout schedule")
        verbose_name_plural = _("Payout schedules")

    def __str__(self) -> str:
        return f"{self.freelancer_id}: {self.schedule_type}"


class PayoutAccount(models.Model):
    """The freelancer's Stripe Connect account."""

    class AccountStatus(models.TextChoices):
        PENDING = "pending", _("Onboarding")
        ACTIVE = "active", _("Active")
        RESTRICTED = "restricted", _("Restricted")
        SUSPENDED = "suspended", _("Suspended")

    freelancer = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="payout_account",
    )
    stripe_account_id = models.CharField(max_length=255, unique=True)
    account_status = models.CharField(
        max_length=20,
        choices=AccountStatus.choices,
        default=AccountStatus.PENDING,
    )
    onboarding_completed = models.BooleanField(default=False)
    payouts_enabled = models.BooleanField(default=False)
    details_submitted = models.BooleanField(default=False)
    requirements_due = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payout account")
        verbose_name_plural = _("Payout accounts")

    def __str__(self) -> str:
        return f"{self.stripe_account_id} ({self.account_status})"


class Payout(models.Model):
    """Money owed to a freelancer for one completed booking."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        SCHEDULED = "scheduled", _("Scheduled")
        PROCESSING = "processing", _("Processing")
        PAID = "paid", _("Paid")
        FAILED = "failed", _("Failed")
        CANCELLED = "cancelled", _("Cancelled")
        OVERRIDDEN = "overridden", _("Overridden by admin")

    PROCESSABLE_STATUSES = (Status.PENDING, Status.SCHEDULED)

    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="payouts",
    )
    booking = models.OneToOneField(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="payout",
    )
    amount_pence = models.PositiveIntegerField()
    service_amount_pence = models.PositiveIntegerField()
    commission_amount_pence = models.PositiveIntegerField(default=0)
    booking_fee_pence = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    scheduled_date = models.DateField(null=True, blank=True)
    processed_date = models.DateTimeField(null=True, blank=True)
    transfer_id = models.CharField(max_length=255, blank=True)
    error_message = models.TextField(blank=True)
    admin_notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payout")
        verbose_name_plural = _("Payouts")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "scheduled_date"]),
            models.Index(fields=["freelancer", "status"]),
        ]

    def __str__(self) -> str:
        return f"Payout {self.id}: {self.amount_pence}p to {self.freelancer_id} ({self.status})"


class PayoutAuditLog(models.Model):
    payout = models.ForeignKey(Payout, on_delete=models.CASCADE, related_name="audit_logs")
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payout_audit_entries",
    )
    action = models.CharField(max_length=50)
    old_status = models.CharField(max_length=20, blank=True)
    new_status = models.CharField(max_length=20, blank=True)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.payout_id}: {self.action}"
