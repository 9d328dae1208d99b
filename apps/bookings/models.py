"""Booking domain models for the Braida marketplace."""

from __future__ import annotations

import secrets

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.catalog.models import Service
from shared.domain.value_objects import TimeRange
from shared.infrastructure.fields import EncryptedCharField


class Booking(models.Model):
    """An appointment a client books with a freelancer for one service."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Awaiting freelancer")
        CONFIRMED = "confirmed", _("Confirmed")
        IN_PROGRESS = "in_progress", _("In progress")
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")
        EXPIRED = "expired", _("Expired")

    class PaymentStatus(models.TextChoices):
        UNPAID = "unpaid", _("Unpaid")
        PAYMENT_PENDING = "payment_pending", _("Payment pending")
        PAYMENT_FAILED = "payment_failed", _("Payment failed")
        PAID = "paid", _("Paid")
        REFUNDED = "refunded", _("Refunded")
        PARTIALLY_REFUNDED = "partially_refunded", _("Partially refunded")

    class CancelledBy(models.TextChoices):
        CLIENT = "client", _("Client")
        FREELANCER = "freelancer", _("Freelancer")
        SYSTEM = "system", _("System")

    LocationType = Service.LocationType

    # Statuses that hold a time slot in the freelancer's calendar
    SLOT_BLOCKING_STATUSES = (Status.PENDING, Status.CONFIRMED)
    CLOSED_STATUSES = (Status.CANCELLED, Status.COMPLETED, Status.EXPIRED)

    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="client_bookings",
    )
    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="freelancer_bookings",
    )
    service = models.ForeignKey(
        "catalog.Service",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    booking_code = models.CharField(max_length=12, unique=True, editable=False)
    start_datetime = models.DateTimeField()
    end_datetime = models.DateTimeField()
    location_type = models.CharField(max_length=40, choices=LocationType.choices)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
    )

    client_address_line1 = EncryptedCharField(max_length=255, blank=True)
    client_postcode = models.CharField(max_length=10, blank=True)
    client_city = models.CharField(max_length=100, blank=True)
    client_provides_own_materials = models.BooleanField(default=False)
    notes = models.TextField(blank=True)

    price_base_pence = models.PositiveIntegerField(default=0)
    price_materials_pence = models.PositiveIntegerField(default=0)
    price_travel_pence = models.PositiveIntegerField(default=0)
    platform_fee_pence = models.PositiveIntegerField(default=0)
    total_price_pence = models.PositiveIntegerField(default=0)

    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("A pending booking not accepted by this time expires."),
    )
    auto_confirm_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("Escrow is released automatically after this time."),
    )
    completed_at = models.DateTimeField(null=True, blank=True)
    reminder_sent_at = models.DateTimeField(null=True, blank=True)

    declined_reason = models.CharField(max_length=500, blank=True)
    declined_at = models.DateTimeField(null=True, blank=True)

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.CharField(max_length=20, choices=CancelledBy.choices, blank=True)
    cancellation_reason = models.CharField(max_length=500, blank=True)
    refund_amount_pence = models.PositiveIntegerField(null=True, blank=True)
    refund_percentage = models.PositiveSmallIntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-start_datetime"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(end_datetime__gt=models.F("start_datetime")),
                name="booking_valid_times",
            ),
        ]
        indexes = [
            models.Index(fields=["freelancer", "start_datetime"]),
            models.Index(fields=["client", "start_datetime"]),
            models.Index(fields=["status", "expires_at"]),
            models.Index(fields=["booking_code"]),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.booking_code} ({self.get_status_display()})"

    def clean(self) -> None:
        if self.start_datetime and self.end_datetime and self.start_datetime >= self.end_datetime:
            raise ValidationError(_("The appointment must end after it starts."))

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.booking_code:
            self.booking_code = self.generate_booking_code()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_booking_code() -> str:
        return secrets.token_hex(4).upper()

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start_datetime, self.end_datetime)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == self.PaymentStatus.PAID

    @property
    def is_closed(self) -> bool:
        return self.status in self.CLOSED_STATUSES

    def party_of(self, user) -> str | None:
        """``client`` or ``freelancer`` when ``user`` takes part in the booking."""
        if user.id == self.client_id:
            return self.CancelledBy.CLIENT
        if user.id == self.freelancer_id:
            return self.CancelledBy.FREELANCER
        return None

    def other_party(self, user):
        return self.freelancer if user.id == self.client_id else self.client

    # --- State transitions ----------------------------------------------------
    def mark_confirmed(self) -> None:
        self.status = self.Status.CONFIRMED
        self.expires_at = None
        self.save(update_fields=["status", "expires_at", "updated_at"])

    def mark_declined(self, reason: str = "") -> None:
        now = timezone.now()
        self.status = self.Status.CANCELLED
        self.declined_reason = reason
        self.declined_at = now
        self.cancelled_at = now
        self.cancelled_by = self.CancelledBy.FREELANCER
        self.cancellation_reason = reason
        self.expires_at = None
        self.save(
            update_fields=[
                "status",
                "declined_reason",
                "declined_at",
                "cancelled_at",
                "cancelled_by",
                "cancellation_reason",
                "expires_at",
                "updated_at",
            ]
        )

    def mark_cancelled(
        self,
        cancelled_by: str,
        reason: str = "",
        *,
        refund_percentage: int | None = None,
        refund_amount_pence: int | None = None,
    ) -> None:
        self.status = self.Status.CANCELLED
        self.cancelled_by = cancelled_by
        self.cancellation_reason = reason
        self.cancelled_at = timezone.now()
        self.refund_percentage = refund_percentage
        self.refund_amount_pence = refund_amount_pence
        self.expires_at = None
        self.auto_confirm_at = None
        self.save(
            update_fields=[
                "status",
                "cancelled_by",
                "cancellation_reason",
                "cancelled_at",
                "refund_percentage",
                "refund_amount_pence",
                "expires_at",
                "auto_confirm_at",
                "updated_at",
            ]
        )

    def mark_expired(self) -> None:
        self.status = self.Status.EXPIRED
        self.cancelled_by = self.CancelledBy.SYSTEM
        self.cancelled_at = timezone.now()
        self.cancellation_reason = "Not accepted before the hold expired"
        self.save(
            update_fields=["status", "cancelled_by", "cancelled_at", "cancellation_reason", "updated_at"]
        )

    def mark_in_progress(self) -> None:
        self.status = self.Status.IN_PROGRESS
        self.save(update_fields=["status", "updated_at"])

    def mark_completed(self) -> None:
        self.status = self.Status.COMPLETED
        self.completed_at = timezone.now()
        self.auto_confirm_at = None
        self.save(update_fields=["status", "completed_at", "auto_confirm_at", "updated_at"])

    def set_payment_status(self, payment_status: str) -> None:
        self.payment_status = payment_status
        self.save(update_fields=["payment_status", "updated_at"])

    def should_expire(self) -> bool:
        return bool(self.expires_at and timezone.now() > self.expires_at and self.status == self.Status.PENDING)


class BookingAuditLog(models.Model):
    """Append-only history of booking state changes."""

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="audit_logs")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="booking_audit_entries",
    )
    action = models.CharField(max_length=50)
    previous_status = models.CharField(max_length=20, blank=True)
    new_status = models.CharField(max_length=20, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Booking audit entry")
        verbose_name_plural = _("Booking audit log")
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.booking_id}: {self.action}"

    @classmethod
    def record(
        cls,
        booking: Booking,
        action: str,
        *,
        user=None,
        previous_status: str = "",
        new_status: str | None = None,
        metadata: dict | None = None,
    ) -> "BookingAuditLog":
        return cls.objects.create(
            booking=booking,
            user=user,
            action=action,
            previous_status=previous_status,
            new_status=booking.status if new_status is None else new_status,
            metadata=metadata or {},
        )


class RescheduleRequest(models.Model):
    """A proposal from one party to move the appointment."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        ACCEPTED = "accepted", _("Accepted")
        REJECTED = "rejected", _("Rejected")

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="reschedule_requests")
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reschedule_requests",
    )
    new_start_datetime = models.DateTimeField()
    new_end_datetime = models.DateTimeField()
    reason = models.CharField(max_length=500, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    responded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reschedule_responses",
    )
    responded_at = models.DateTimeField(null=True, blank=True)
    response_note = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Reschedule request")
        verbose_name_plural = _("Reschedule requests")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["booking"],
                condition=models.Q(status="pending"),
                name="one_pending_reschedule_per_booking",
            ),
        ]

    def __str__(self) -> str:
        return f"Reschedule of {self.booking_id} ({self.status})"
