"""Celery tasks for payments."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from .services import auto_confirm_candidates, release_escrow

logger = logging.getLogger(__name__)


@shared_task(name="finances.process_auto_confirms")
def process_auto_confirms() -> dict[str, int]:
    """
    Release escrow for bookings the client never confirmed.

    Candidates passed ``auto_confirm_at``, are confirmed or in progress,
    are paid and have no unresolved dispute.

    Runs every 15 minutes via Celery Beat.

    Returns:
        dict: {"processed": n, "errors": n}
    """
    processed = errors = 0
    for booking in auto_confirm_candidates(timezone.now()):
        try:
            release_escrow(booking, actor=None)
            processed += 1
        except Exception as e:
            errors += 1
            logger.error(f"Error auto-confirming booking {booking.id}: {e}", exc_info=True)

    if processed:
        logger.info(f"Auto-confirmed {processed} bookings")
    return {"processed": processed, "errors": errors}
