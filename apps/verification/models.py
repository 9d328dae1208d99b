"""Freelancer identity verification.

A freelancer submits their legal details and an ID document; an admin
approves or rejects the submission. Approval marks the account as a
verified freelancer.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.infrastructure.fields import EncryptedCharField


class FreelancerVerification(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", _("Pending review")
        VERIFIED = "verified", _("Verified")
        REJECTED = "rejected", _("Rejected")

    class DocumentType(models.TextChoices):
        PASSPORT = "passport", _("Passport")
        BRP = "brp", _("Biometric residence permit")
        DRIVING_LICENCE = "driving_licence", _("Driving licence")

    freelancer = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="verification",
    )
    legal_name = models.CharField(max_length=255)
    date_of_birth = models.DateField()
    address_line1 = EncryptedCharField(max_length=255)
    address_line2 = EncryptedCharField(max_length=255, blank=True)
    city = models.CharField(max_length=100)
    postcode = models.CharField(max_length=10)
    id_document_type = models.CharField(max_length=20, choices=DocumentType.choices)
    id_document = models.FileField(upload_to="verification/%Y/%m/")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    submitted_at = models.DateTimeField(default=timezone.now)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    rejection_note = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Freelancer verification")
        verbose_name_plural = _("Freelancer verifications")
        ordering = ["submitted_at"]
        indexes = [
            models.Index(fields=["status", "submitted_at"]),
        ]

    def __str__(self) -> str:
        return f"Verification of {self.freelancer_id} ({self.status})"

    def mark_reviewed(self, new_status: str, reviewer, note: str = "") -> None:
        self.status = new_status
        self.reviewed_at = timezone.now()
        self.reviewed_by = reviewer
        self.rejection_note = note
        self.save(update_fields=["status", "reviewed_at", "reviewed_by", "rejection_note", "updated_at"])


class VerificationActionLog(models.Model):
    """History of submissions and reviews for one freelancer."""

    class Action(models.TextChoices):
        SUBMITTED = "submitted", _("Submitted")
        RESUBMITTED = "resubmitted", _("Resubmitted")
        APPROVED = "approved", _("Approved")
        REJECTED = "rejected", _("Rejected")

    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="verification_logs",
    )
    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    action = models.CharField(max_length=20, choices=Action.choices)
    previous_status = models.CharField(max_length=20)
    new_status = models.CharField(max_length=20)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.action} for {self.freelancer_id}"
