"""User reports and the admin actions taken on them."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Report(models.Model):
    """A complaint one user files about another."""

    class IssueType(models.TextChoices):
        SAFETY = "safety", _("Safety")
        QUALITY = "quality", _("Quality")
        PAYMENT = "payment", _("Payment")
        HARASSMENT = "harassment", _("Harassment")
        FRAUD = "fraud", _("Fraud")
        OTHER = "other", _("Other")

    class Status(models.TextChoices):
        NEW = "new", _("New")
        UNDER_REVIEW = "under_review", _("Under review")
        RESOLVED = "resolved", _("Resolved")

    reporter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="submitted_reports",
    )
    reported_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reports_against",
    )
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reports",
    )
    issue_type = models.CharField(max_length=20, choices=IssueType.choices)
    description = models.TextField()
    attachment = models.FileField(upload_to="reports/%Y/%m/", blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.NEW)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Report")
        verbose_name_plural = _("Reports")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"]),
            models.Index(fields=["reported_user", "status"]),
        ]

    def __str__(self) -> str:
        return f"Report #{self.pk} ({self.issue_type}) against {self.reported_user_id}"


class ReportAdminAction(models.Model):
    class ActionType(models.TextChoices):
        STATUS_UPDATE = "status_update", _("Status update")
        WARN = "warn", _("Warning")
        SUSPEND = "suspend", _("Suspension")
        REACTIVATE = "reactivate", _("Reactivation")

    report = models.ForeignKey(Report, on_delete=models.CASCADE, related_name="admin_actions")
    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="+",
    )
    action_type = models.CharField(max_length=20, choices=ActionType.choices)
    notes = models.TextField(blank=True)
    previous_status = models.CharField(max_length=20, blank=True)
    new_status = models.CharField(max_length=20, blank=True)
    previous_account_status = models.CharField(max_length=20, blank=True)
    new_account_status = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.action_type} on report {self.report_id}"
