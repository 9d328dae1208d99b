"""Celery tasks for notifications."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from .models import Notification
from .services import send_notification

logger = logging.getLogger(__name__)


@shared_task(name="notifications.send_booking_reminders")
def send_booking_reminders() -> dict[str, int]:
    """
    Remind both parties of confirmed appointments starting within 24 hours.

    Each booking is reminded once; ``reminder_sent_at`` marks it.

    Returns:
        dict: {"sent": number of bookings reminded}
    """
    from apps.bookings.models import Booking

    now = timezone.now()
    sent_count = 0

    upcoming = Booking.objects.filter(
        status=Booking.Status.CONFIRMED,
        start_datetime__gt=now,
        start_datetime__lte=now + timedelta(hours=24),
        reminder_sent_at__isnull=True,
    ).select_related("client", "freelancer", "service")

    for booking in upcoming:
        try:
            when = timezone.localtime(booking.start_datetime).strftime("%d/%m/%Y %H:%M")
            data = {"booking_id": booking.id}
            send_notification(
                booking.client,
                Notification.Type.BOOKING_REMINDER,
                "Appointment Reminder",
                f"Your {booking.service.name} appointment is on {when}.",
                data,
                email=True,
            )
            send_notification(
                booking.freelancer,
                Notification.Type.BOOKING_REMINDER,
                "Appointment Reminder",
                f"You have a {booking.service.name} appointment on {when}.",
                data,
            )
            booking.reminder_sent_at = now
            booking.save(update_fields=["reminder_sent_at"])
            sent_count += 1
        except Exception as e:
            logger.error(f"Error sending reminder for booking {booking.id}: {e}", exc_info=True)

    if sent_count > 0:
        logger.info(f"Sent {sent_count} booking reminders")

    return {"sent": sent_count}
