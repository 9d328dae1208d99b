"""Financial domain models: booking payments held in escrow."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Payment(models.Model):
    """The card payment for a booking.

    Funds stay in escrow (``held``) until the client confirms the service,
    the booking auto-confirms, or a refund or dispute settles them.
    """

    class Status(models.TextChoices):
        INITIATED = "initiated", _("Initiated")
        PENDING = "pending", _("Pending")
        SUCCEEDED = "succeeded", _("Succeeded")
        FAILED = "failed", _("Failed")
        REFUNDED = "refunded", _("Refunded")

    class EscrowStatus(models.TextChoices):
        HELD = "held", _("Held")
        RELEASED = "released", _("Released to freelancer")
        REFUNDED = "refunded", _("Refunded")
        DISPUTED = "disputed", _("Disputed")

    booking = models.OneToOneField(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="payment",
    )
    provider = models.CharField(max_length=50, default="stripe")
    payment_intent_id = models.CharField(max_length=255, unique=True)
    charge_id = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.INITIATED)
    escrow_status = models.CharField(max_length=20, choices=EscrowStatus.choices, default=EscrowStatus.HELD)
    amount_pence = models.PositiveIntegerField()
    currency = models.CharField(max_length=3, default="GBP")
    platform_fee_pence = models.PositiveIntegerField(default=0)
    freelancer_payout_pence = models.PositiveIntegerField(default=0)
    refund_id = models.CharField(max_length=255, blank=True)
    refund_status = models.CharField(max_length=30, blank=True)
    refund_amount_pence = models.PositiveIntegerField(default=0)
    refunded_at = models.DateTimeField(null=True, blank=True)
    escrow_released_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payment")
        verbose_name_plural = _("Payments")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "escrow_status"]),
        ]

    def __str__(self) -> str:
        return f"Payment {self.payment_intent_id} for booking {self.booking_id}"

    @property
    def refundable_pence(self) -> int:
        return max(self.amount_pence - self.refund_amount_pence, 0)

    @property
    def is_fully_refunded(self) -> bool:
        return self.refund_amount_pence >= self.amount_pence

    def mark_succeeded(self, charge_id: str = "") -> None:
        self.status = self.Status.SUCCEEDED
        self.charge_id = charge_id or self.charge_id
        self.paid_at = timezone.now()
        self.save(update_fields=["status", "charge_id", "paid_at", "updated_at"])

    def mark_failed(self) -> None:
        self.status = self.Status.FAILED
        self.save(update_fields=["status", "updated_at"])

    def release_escrow(self) -> None:
        self.escrow_status = self.EscrowStatus.RELEASED
        self.escrow_released_at = timezone.now()
        self.save(update_fields=["escrow_status", "escrow_released_at", "updated_at"])

    def set_escrow_status(self, escrow_status: str) -> None:
        self.escrow_status = escrow_status
        self.save(update_fields=["escrow_status", "updated_at"])

    def record_refund(self, refund_id: str, refund_status: str, amount_pence: int) -> None:
        self.refund_id = refund_id
        self.refund_status = refund_status
        self.refund_amount_pence += amount_pence
        self.refunded_at = timezone.now()
        self.escrow_status = self.EscrowStatus.REFUNDED
        if self.is_fully_refunded:
            self.status = self.Status.REFUNDED
        self.save(
            update_fields=[
                "refund_id",
                "refund_status",
                "refund_amount_pence",
                "refunded_at",
                "escrow_status",
                "status",
                "updated_at",
            ]
        )


class PaymentWebhookEvent(models.Model):
    """Every Stripe event received, keyed by event id for idempotency."""

    event_id = models.CharField(max_length=255, unique=True)
    event_type = models.CharField(max_length=100)
    payload = models.JSONField(default=dict)
    processed_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Webhook event")
        verbose_name_plural = _("Webhook events")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.event_type} ({self.event_id})"

    def mark_processed(self) -> None:
        self.processed_at = timezone.now()
        self.error_message = ""
        self.save(update_fields=["processed_at", "error_message"])

    def mark_failed(self, error: str) -> None:
        self.error_message = error[:2000]
        self.save(update_fields=["error_message"])
