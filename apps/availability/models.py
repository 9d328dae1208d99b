"""Availability models: weekly rules, date exceptions and settings."""

from __future__ import annotations

from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MaxValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class AvailabilityRule(models.Model):
    """Recurring working window on one weekday.

    ``day_of_week`` counts from Sunday: 0=Sunday .. 6=Saturday.
    """

    class Weekday(models.IntegerChoices):
        SUNDAY = 0, _("Sunday")
        MONDAY = 1, _("Monday")
        TUESDAY = 2, _("Tuesday")
        WEDNESDAY = 3, _("Wednesday")
        THURSDAY = 4, _("Thursday")
        FRIDAY = 5, _("Friday")
        SATURDAY = 6, _("Saturday")

    freelancer = models.ForeignKey(
        "users.CustomUser",
        on_delete=models.CASCADE,
        related_name="availability_rules",
    )
    day_of_week = models.PositiveSmallIntegerField(choices=Weekday.choices)
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Availability rule")
        verbose_name_plural = _("Availability rules")
        ordering = ["day_of_week", "start_time"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(start_time__lt=models.F("end_time")),
                name="availability_rule_start_before_end",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_day_of_week_display()} {self.start_time:%H:%M}-{self.end_time:%H:%M}"


class AvailabilityException(models.Model):
    """One-off change to the weekly schedule on a specific date.

    Without times a ``blocked`` exception covers the whole day.
    """

    class ExceptionType(models.TextChoices):
        BLOCKED = "blocked", _("Blocked")
        AVAILABLE = "available", _("Available")

    freelancer = models.ForeignKey(
        "users.CustomUser",
        on_delete=models.CASCADE,
        related_name="availability_exceptions",
    )
    date = models.DateField()
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)
    exception_type = models.CharField(
        max_length=16,
        choices=ExceptionType.choices,
        default=ExceptionType.BLOCKED,
    )
    reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Availability exception")
        verbose_name_plural = _("Availability exceptions")
        ordering = ["date", "start_time"]
        indexes = [
            models.Index(fields=["freelancer", "date"]),
        ]

    def __str__(self) -> str:
        return f"{self.get_exception_type_display()} {self.date:%d/%m/%Y}"

    @property
    def is_full_day(self) -> bool:
        return self.start_time is None and self.end_time is None

    def clean(self) -> None:
        if (self.start_time is None) != (self.end_time is None):
            raise ValidationError(_("Provide both start and end time, or neither for a full day."))
        if self.start_time is not None and self.start_time >= self.end_time:
            raise ValidationError(_("Start time must be before end time."))


class AvailabilitySettings(models.Model):
    """Per-freelancer booking constraints used by the slot generator."""

    freelancer = models.OneToOneField(
        "users.CustomUser",
        on_delete=models.CASCADE,
        related_name="availability_settings",
    )
    min_lead_time_hours = models.PositiveIntegerField(default=0, validators=[MaxValueValidator(24 * 30)])
    max_bookings_per_day = models.PositiveIntegerField(null=True, blank=True)
    buffer_minutes = models.PositiveIntegerField(default=0, validators=[MaxValueValidator(240)])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Availability settings")
        verbose_name_plural = _("Availability settings")

    def __str__(self) -> str:
        return f"Availability settings of {self.freelancer_id}"
