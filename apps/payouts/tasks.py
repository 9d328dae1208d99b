"""Celery tasks for payouts."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import due_payouts, process_payout_now

logger = logging.getLogger(__name__)


@shared_task(name="payouts.process_scheduled_payouts")
def process_scheduled_payouts() -> dict[str, int]:
    """
    Pay out every pending or scheduled payout that is due.

    Runs daily at 09:00 via Celery Beat.

    Returns:
        dict: {"processed": n, "succeeded": n, "failed": n}
    """
    processed = succeeded = failed = 0
    for payout in due_payouts():
        processed += 1
        try:
            process_payout_now(payout)
            succeeded += 1
        except Exception as e:
            failed += 1
            logger.error(f"Error processing payout {payout.id}: {e}", exc_info=True)

    if processed:
        logger.info(f"Scheduled payouts: {succeeded} paid, {failed} failed")
    return {"processed": processed, "succeeded": succeeded, "failed": failed}
