"""Verification workflows: freelancer submission and admin review."""

from __future__ import annotations

import logging
from datetime import date

from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.notifications.models import Notification
from apps.notifications.services import notify_admins, send_notification
from apps.users.models import CustomUser
from apps.users.services import verify_freelancer

from .models import FreelancerVerification, VerificationActionLog

logger = logging.getLogger(__name__)

UNVERIFIED = "unverified"
MINIMUM_AGE = 18
MAX_DOCUMENT_BYTES = 10 * 1024 * 1024


class VerificationError(Exception):
    status_code = 400


def age_on(birth_date: date, today: date) -> int:
    return today.year - birth_date.year - ((today.month, today.day) < (birth_date.month, birth_date.day))


def verification_status(freelancer: CustomUser) -> str:
    record = FreelancerVerification.objects.filter(freelancer=freelancer).first()
    return record.status if record else UNVERIFIED


@transaction.atomic
def submit_verification(freelancer: CustomUser, *, id_document, **details) -> FreelancerVerification:
    """Store a submission for review; a rejected one may be resubmitted."""
    if freelancer.is_verified_freelancer:
        raise VerificationError("Your profile is already verified.")
    if age_on(details["date_of_birth"], timezone.localdate()) < MINIMUM_AGE:
        raise VerificationError(f"You must be {MINIMUM_AGE} or older to verify.")
    if id_document.size > MAX_DOCUMENT_BYTES:
        raise VerificationError("ID documents must be 10 MB or smaller.")

    record = FreelancerVerification.objects.select_for_update().filter(freelancer=freelancer).first()
    previous = record.status if record else UNVERIFIED
    if previous == FreelancerVerification.Status.VERIFIED:
        raise VerificationError("Your profile is already verified.")

    record = record or FreelancerVerification(freelancer=freelancer)
    for field, value in details.items():
        setattr(record, field, value)
    record.id_document = id_document
    record.status = FreelancerVerification.Status.PENDING
    record.submitted_at = timezone.now()
    record.reviewed_at = None
    record.reviewed_by = None
    record.rejection_note = ""
    record.save()

    action = (
        VerificationActionLog.Action.RESUBMITTED
        if previous == FreelancerVerification.Status.REJECTED
        else VerificationActionLog.Action.SUBMITTED
    )
    VerificationActionLog.objects.create(
        freelancer=freelancer,
        action=action,
        previous_status=previous,
        new_status=record.status,
        notes="Verification submitted",
    )
    logger.info(f"Verification {action} by {freelancer.email}")
    notify_admins(
        Notification.Type.VERIFICATION,
        "Verification Submitted",
        f"{freelancer.display_name} submitted identity documents for review.",
        {"verification_id": record.id, "freelancer_id": freelancer.id},
    )
    return record


def _require_pending(record: FreelancerVerification, verb: str) -> None:
    if record.status != FreelancerVerification.Status.PENDING:
        raise VerificationError(f"Can only {verb} pending verifications.")


@transaction.atomic
def approve_verification(record: FreelancerVerification, *, actor: CustomUser, notes: str = "") -> FreelancerVerification:
    _require_pending(record, "approve")
    record.mark_reviewed(FreelancerVerification.Status.VERIFIED, actor)
    VerificationActionLog.objects.create(
        freelancer=record.freelancer,
        admin=actor,
        action=VerificationActionLog.Action.APPROVED,
        previous_status=FreelancerVerification.Status.PENDING,
        new_status=record.status,
        notes=notes,
    )
    if not record.freelancer.is_verified_freelancer:
        verify_freelancer(record.freelancer, actor=actor)
    return record


@transaction.atomic
def reject_verification(record: FreelancerVerification, note: str, *, actor: CustomUser) -> FreelancerVerification:
    if not note.strip():
        raise VerificationError("A rejection note is required.")
    _require_pending(record, "reject")
    record.mark_reviewed(FreelancerVerification.Status.REJECTED, actor, note)
    VerificationActionLog.objects.create(
        freelancer=record.freelancer,
        admin=actor,
        action=VerificationActionLog.Action.REJECTED,
        previous_status=FreelancerVerification.Status.PENDING,
        new_status=record.status,
        notes=note,
    )
    logger.info(f"Verification of {record.freelancer.email} rejected by {actor.email}")
    send_notification(
        record.freelancer,
        Notification.Type.VERIFICATION,
        "Verification Rejected",
        f"We could not verify your profile. {note} You can submit your details again.",
        {"verification_id": record.id},
        email=True,
    )
    return record
