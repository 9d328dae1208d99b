"""Models for the review domain.

A ``Review`` is a client's 1-5 rating of a freelancer for one completed
booking, with an optional comment and a single freelancer response.
Removed reviews stay in the table but are hidden and left out of the
freelancer's average.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Review(models.Model):
    """Represents a review left by a client for a freelancer."""

    booking = models.OneToOneField(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="review",
    )
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reviews_written",
    )
    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reviews_received",
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)],
        help_text=_("Rating from 1 to 5"),
    )
    text = models.TextField(blank=True)

    freelancer_response = models.TextField(blank=True)
    freelancer_response_at = models.DateTimeField(null=True, blank=True)

    # Moderation
    is_removed = models.BooleanField(default=False)
    removed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    removed_at = models.DateTimeField(null=True, blank=True)
    removal_reason = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["freelancer", "-created_at"]),
            models.Index(fields=["rating"]),
        ]

    def __str__(self) -> str:
        return f"Review by {self.client_id} for freelancer {self.freelancer_id} (Rating: {self.rating})"

    def remove(self, actor, reason: str) -> None:
        self.is_removed = True
        self.removed_by = actor
        self.removed_at = timezone.now()
        self.removal_reason = reason
        self.save(update_fields=["is_removed", "removed_by", "removed_at", "removal_reason", "updated_at"])

    def restore(self) -> None:
        self.is_removed = False
        self.removed_by = None
        self.removed_at = None
        self.removal_reason = ""
        self.save(update_fields=["is_removed", "removed_by", "removed_at", "removal_reason", "updated_at"])
