"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from .models import Booking
from .services import expire_booking, start_booking

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.expire_pending_bookings")
def expire_pending_bookings() -> dict[str, int]:
    """
    Expire pending bookings the freelancer did not accept in time.

    Looks for PENDING bookings whose ``expires_at`` has passed, marks
    them EXPIRED and refunds any payment still held in escrow.

    Runs every minute via Celery Beat.

    Returns:
        dict: {"expired": number of expired bookings}
    """
    now = timezone.now()
    expired_count = 0

    expired_bookings = Booking.objects.filter(
        status=Booking.Status.PENDING,
        expires_at__lt=now,
    ).select_related("client", "freelancer", "service")

    for booking in expired_bookings:
        try:
            expire_booking(booking)
            expired_count += 1
        except Exception as e:
            logger.error(f"Error expiring booking {booking.id}: {e}", exc_info=True)

    if expired_count > 0:
        logger.info(f"Expired {expired_count} pending bookings")

    return {"expired": expired_count}


@shared_task(name="bookings.start_due_bookings")
def start_due_bookings() -> dict[str, int]:
    """
    Move confirmed, paid bookings whose start time has passed to IN_PROGRESS.

    Runs every 15 minutes.

    Returns:
        dict: {"started": number of updated bookings}
    """
    started = 0
    due = Booking.objects.filter(
        status=Booking.Status.CONFIRMED,
        payment_status=Booking.PaymentStatus.PAID,
        start_datetime__lte=timezone.now(),
    )
    for booking in due:
        try:
            start_booking(booking)
            started += 1
        except Exception as e:
            logger.error(f"Error starting booking {booking.id}: {e}", exc_info=True)

    if started > 0:
        logger.info(f"Started {started} bookings")

    return {"started": started}
