"""Notification model.

A notification is created by domain services (new booking requests,
payment releases, dispute updates, account moderation) and read by the
recipient in the app. Each one can be marked as read.
"""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Notification(models.Model):
    """A message sent to a user about some event."""

    class Type(models.TextChoices):
        BOOKING_REQUEST = "booking_request", _("Booking request")
        BOOKING_ACCEPTED = "booking_accepted", _("Booking accepted")
        BOOKING_DECLINED = "booking_declined", _("Booking declined")
        BOOKING_CANCELLED = "booking_cancelled", _("Booking cancelled")
        BOOKING_EXPIRED = "booking_expired", _("Booking expired")
        BOOKING_REMINDER = "booking_reminder", _("Booking reminder")
        RESCHEDULE_REQUEST = "reschedule_request", _("Reschedule request")
        RESCHEDULE_RESPONSE = "reschedule_response", _("Reschedule response")
        PAYMENT_RECEIVED = "payment_received", _("Payment received")
        PAYMENT_FAILED = "payment_failed", _("Payment failed")
        PAYMENT_RELEASED = "payment_released", _("Payment released")
        REFUND_ISSUED = "refund_issued", _("Refund issued")
        DISPUTE_OPENED = "dispute_opened", _("Dispute opened")
        DISPUTE_RESOLVED = "dispute_resolved", _("Dispute resolved")
        RELIABILITY_WARNING = "reliability_warning", _("Reliability warning")
        MESSAGE_RECEIVED = "message_received", _("Message received")
        REPORT = "report", _("Report")
        VERIFICATION = "verification", _("Verification")
        ACCOUNT = "account", _("Account")
        SYSTEM = "system", _("System")

    user = models.ForeignKey(
        'users.CustomUser', on_delete=models.CASCADE, related_name='notifications'
    )
    notification_type = models.CharField(
        max_length=32, choices=Type.choices, default=Type.SYSTEM
    )
    title = models.CharField(max_length=255)
    message = models.TextField()
    data = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read']),
        ]

    def __str__(self) -> str:
        return f"Notification to {self.user_id}: {self.title}"

    def mark_read(self) -> None:
        if not self.is_read:
            self.is_read = True
            self.save(update_fields=['is_read'])
