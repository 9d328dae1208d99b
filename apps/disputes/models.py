"""Dispute models."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Dispute(models.Model):
    """A client's complaint about a booking, resolved by an admin."""

    class Category(models.TextChoices):
        NO_SHOW = "no-show", _("Freelancer did not show up")
        QUALITY = "quality", _("Quality of service")
        SAFETY = "safety", _("Safety concern")
        OTHER = "other", _("Other")

    class Status(models.TextChoices):
        NEW = "new", _("New")
        IN_REVIEW = "in_review", _("In review")
        RESOLVED = "resolved", _("Resolved")

    class ResolutionType(models.TextChoices):
        FULL_REFUND = "full_refund", _("Full refund to client")
        PARTIAL_REFUND = "partial_refund", _("Partial refund to client")
        RELEASE_TO_FREELANCER = "release_to_freelancer", _("Release to freelancer")
        NO_ACTION = "no_action", _("No action")

    booking = models.OneToOneField(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="dispute",
    )
    raised_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="raised_disputes",
    )
    category = models.CharField(max_length=20, choices=Category.choices)
    description = models.TextField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.NEW)
    resolution_type = models.CharField(max_length=30, choices=ResolutionType.choices, blank=True)
    resolution_amount_pence = models.PositiveIntegerField(null=True, blank=True)
    resolution_notes = models.TextField(blank=True)
    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="resolved_disputes",
    )
    resolved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Dispute")
        verbose_name_plural = _("Disputes")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"Dispute #{self.pk} ({self.category}) on booking {self.booking_id}"

    @property
    def is_resolved(self) -> bool:
        return self.status == self.Status.RESOLVED

    def mark_resolved(self, resolution_type: str, actor, *, amount_pence=None, notes: str = "") -> None:
        self.status = self.Status.RESOLVED
        self.resolution_type = resolution_type
        self.resolution_amount_pence = amount_pence
        self.resolution_notes = notes
        self.resolved_by = actor
        self.resolved_at = timezone.now()
        self.save()


class DisputeAttachment(models.Model):
    dispute = models.ForeignKey(Dispute, on_delete=models.CASCADE, related_name="attachments")
    file = models.FileField(upload_to="disputes/%Y/%m/")
    description = models.CharField(max_length=255, blank=True)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="+",
    )
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["uploaded_at", "id"]

    def __str__(self) -> str:
        return f"{self.file.name} ({self.dispute_id})"


class DisputeNote(models.Model):
    """Internal admin note, never shown to the parties."""

    dispute = models.ForeignKey(Dispute, on_delete=models.CASCADE, related_name="notes")
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="+",
    )
    note = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]


class DisputeAuditLog(models.Model):
    dispute = models.ForeignKey(Dispute, on_delete=models.CASCADE, related_name="audit_logs")
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    action = models.CharField(max_length=50)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.action} on dispute {self.dispute_id}"
