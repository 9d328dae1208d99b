"""Review workflows and the freelancer rating cache."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction  # type: ignore
from django.db.models import Avg, Count  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.models import Booking
from apps.users.models import FreelancerProfile

from .models import Review

logger = logging.getLogger(__name__)


class ReviewError(Exception):
    status_code = 400


class ReviewPermissionError(ReviewError):
    status_code = 403


class ReviewExistsError(ReviewError):
    status_code = 409


def recompute_freelancer_rating(freelancer) -> FreelancerProfile:
    stats = Review.objects.filter(freelancer=freelancer, is_removed=False).aggregate(
        average=Avg("rating"),
        total=Count("id"),
    )
    profile, _ = FreelancerProfile.objects.get_or_create(user=freelancer)
    average = stats["average"]
    profile.average_rating = (
        Decimal(str(average)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP) if average is not None else None
    )
    profile.total_reviews = stats["total"]
    profile.save(update_fields=["average_rating", "total_reviews", "updated_at"])
    return profile


@transaction.atomic
def create_review(booking: Booking, user, rating: int, text: str = "") -> Review:
    if booking.client_id != user.id:
        raise ReviewPermissionError("Only the client of this booking can review it.")
    if booking.status != Booking.Status.COMPLETED:
        raise ReviewError("You can only review a completed booking.")
    if Review.objects.filter(booking=booking).exists():
        raise ReviewExistsError("This booking has already been reviewed.")

    review = Review.objects.create(
        booking=booking,
        client=user,
        freelancer=booking.freelancer,
        rating=rating,
        text=text,
    )
    recompute_freelancer_rating(booking.freelancer)
    logger.info(f"Review {review.id} ({rating}/5) left by {user.email} for {booking.freelancer.email}")
    return review


def respond_to_review(review: Review, user, response: str) -> Review:
    if review.freelancer_id != user.id:
        raise ReviewPermissionError("Only the reviewed freelancer can respond.")
    if review.freelancer_response:
        raise ReviewError("You have already responded to this review.")

    review.freelancer_response = response
    review.freelancer_response_at = timezone.now()
    review.save(update_fields=["freelancer_response", "freelancer_response_at", "updated_at"])
    return review


@transaction.atomic
def remove_review(review: Review, actor, reason: str) -> Review:
    review.remove(actor, reason)
    recompute_freelancer_rating(review.freelancer)
    logger.info(f"Review {review.id} removed by {actor.email}: {reason}")
    return review


@transaction.atomic
def restore_review(review: Review, actor) -> Review:
    review.restore()
    recompute_freelancer_rating(review.freelancer)
    logger.info(f"Review {review.id} restored by {actor.email}")
    return review
