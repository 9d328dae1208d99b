"""Dispute workflows: opening, evidence, admin review and resolution."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.models import Booking, BookingAuditLog
from apps.finances.models import Payment
from apps.finances.services import create_payout_for, refund_booking, releasable_amount
from apps.notifications.models import Notification
from apps.notifications.services import notify_admins, send_notification
from apps.users.api.permissions import is_platform_admin
from apps.users.models import CustomUser
from apps.users.services import suspend_account

from .models import Dispute, DisputeAttachment, DisputeAuditLog, DisputeNote

logger = logging.getLogger(__name__)

DISPUTABLE_STATUSES = (Booking.Status.CONFIRMED, Booking.Status.IN_PROGRESS, Booking.Status.COMPLETED)
MOVABLE_ESCROW = (Payment.EscrowStatus.HELD, Payment.EscrowStatus.DISPUTED)
MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024


class DisputeError(Exception):
    status_code = 400


class DisputePermissionError(DisputeError):
    status_code = 403


class DisputeExistsError(DisputeError):
    status_code = 409


def dispute_window() -> timedelta:
    return timedelta(hours=settings.MARKETPLACE.get("DISPUTE_WINDOW_HOURS", 48))


def audit(dispute: Dispute, action: str, *, actor=None, details=None) -> DisputeAuditLog:
    return DisputeAuditLog.objects.create(dispute=dispute, actor=actor, action=action, details=details or {})


def visible_disputes(user):
    qs = Dispute.objects.select_related("booking", "raised_by", "resolved_by")
    if is_platform_admin(user):
        return qs
    return qs.filter(Q(booking__client=user) | Q(booking__freelancer=user))


@transaction.atomic
def open_dispute(booking: Booking, user, category: str, description: str, *, now: datetime | None = None) -> Dispute:
    if booking.client_id != user.id:
        raise DisputePermissionError("Only the client of this booking can open a dispute.")
    if booking.status not in DISPUTABLE_STATUSES:
        raise DisputeError("Disputes can only be opened for confirmed, in-progress or completed bookings.")
    if Dispute.objects.filter(booking=booking).exists():
        raise DisputeExistsError("A dispute already exists for this booking.")
    now = now or timezone.now()
    if now > booking.end_datetime + dispute_window():
        hours = int(dispute_window().total_seconds() // 3600)
        raise DisputeError(f"Disputes must be opened within {hours} hours of the appointment.")

    dispute = Dispute.objects.create(booking=booking, raised_by=user, category=category, description=description)

    payment = Payment.objects.filter(booking=booking).first()
    frozen = payment is not None and payment.escrow_status == Payment.EscrowStatus.HELD
    if frozen:
        payment.set_escrow_status(Payment.EscrowStatus.DISPUTED)

    audit(dispute, "created", actor=user, details={"category": category, "escrow_frozen": frozen})
    BookingAuditLog.record(
        booking,
        "dispute_opened",
        user=user,
        previous_status=booking.status,
        metadata={"dispute_id": dispute.id},
    )
    logger.info(f"Dispute {dispute.id} opened on booking {booking.booking_code} by {user.email} ({category})")

    data = {"dispute_id": dispute.id, "booking_id": booking.id}
    send_notification(
        booking.freelancer,
        Notification.Type.DISPUTE_OPENED,
        "Dispute Opened",
        f"The client opened a dispute about your booking for {booking.service.name}. "
        "Payment is on hold until it is resolved.",
        data,
        email=True,
    )
    notify_admins(
        Notification.Type.DISPUTE_OPENED,
        "New Dispute",
        f"Dispute #{dispute.id} ({dispute.get_category_display()}) on booking {booking.booking_code}.",
        data,
    )
    return dispute


def add_attachment(dispute: Dispute, user, file, description: str = "") -> DisputeAttachment:
    if dispute.raised_by_id != user.id and not is_platform_admin(user):
        raise DisputePermissionError("Only the client who opened the dispute or an admin can add evidence.")
    if dispute.is_resolved:
        raise DisputeError("This dispute is already resolved.")
    if file.size > MAX_ATTACHMENT_BYTES:
        raise DisputeError("Attachments must be 10 MB or smaller.")

    attachment = DisputeAttachment.objects.create(
        dispute=dispute,
        file=file,
        description=description,
        uploaded_by=user,
    )
    audit(dispute, "attachment_added", actor=user, details={"attachment_id": attachment.id})
    return attachment


def update_status(dispute: Dispute, status: str, *, actor) -> Dispute:
    if dispute.is_resolved:
        raise DisputeError("This dispute is already resolved.")
    if status == Dispute.Status.RESOLVED:
        raise DisputeError("Use the resolve action to resolve a dispute.")

    old_status = dispute.status
    dispute.status = status
    dispute.save(update_fields=["status", "updated_at"])
    audit(dispute, "status_updated", actor=actor, details={"old_status": old_status, "new_status": status})
    logger.info(f"Dispute {dispute.id} status {old_status} -> {status} by {actor.email}")
    return dispute


def add_note(dispute: Dispute, note: str, *, actor) -> DisputeNote:
    entry = DisputeNote.objects.create(dispute=dispute, author=actor, note=note)
    audit(dispute, "note_added", actor=actor, details={"note_id": entry.id})
    return entry


def _release_remainder(booking: Booking, payment: Payment) -> int:
    amount = releasable_amount(payment)
    payment.release_escrow()
    if amount > 0:
        create_payout_for(booking, amount)
    return amount


@transaction.atomic
def resolve_dispute(
    dispute: Dispute,
    resolution_type: str,
    *,
    actor,
    amount_pence: int | None = None,
    notes: str = "",
    suspend_user: str | None = None,
    suspension_reason: str = "",
) -> Dispute:
    """Settle the booking's escrow as the admin decided.

    ``suspend_user`` is ``"client"`` or ``"freelancer"``.
    """
    if dispute.is_resolved:
        raise DisputeError("This dispute is already resolved.")
    if resolution_type == Dispute.ResolutionType.PARTIAL_REFUND and not amount_pence:
        raise DisputeError("A partial refund needs a positive amount.")

    booking = dispute.booking
    payment = Payment.objects.filter(booking=booking).first()
    moves_money = resolution_type != Dispute.ResolutionType.NO_ACTION
    if moves_money and (payment is None or payment.escrow_status not in MOVABLE_ESCROW):
        raise DisputeError("There are no funds in escrow for this booking.")

    refunded = released = 0
    if resolution_type == Dispute.ResolutionType.FULL_REFUND:
        refunded = payment.refundable_pence
        refund_booking(booking, refunded, actor=actor, audit_action="dispute_refund")
    elif resolution_type == Dispute.ResolutionType.PARTIAL_REFUND:
        refunded = min(amount_pence, payment.refundable_pence)
        payment = refund_booking(booking, refunded, actor=actor, settle=False, audit_action="dispute_refund")
        if not payment.is_fully_refunded:
            released = _release_remainder(booking, payment)
    elif resolution_type == Dispute.ResolutionType.RELEASE_TO_FREELANCER:
        released = _release_remainder(booking, payment)
    elif payment is not None and payment.escrow_status == Payment.EscrowStatus.DISPUTED:
        payment.set_escrow_status(Payment.EscrowStatus.HELD)

    if moves_money and booking.status != Booking.Status.COMPLETED:
        previous_status = booking.status
        booking.mark_completed()
        BookingAuditLog.record(booking, "dispute_settled", user=actor, previous_status=previous_status)

    dispute.mark_resolved(
        resolution_type,
        actor,
        amount_pence=refunded if resolution_type == Dispute.ResolutionType.PARTIAL_REFUND else amount_pence,
        notes=notes,
    )

    suspended = None
    if suspend_user:
        target = booking.client if suspend_user == "client" else booking.freelancer
        if target.status != CustomUser.AccountStatus.SUSPENDED:
            suspend_account(target, suspension_reason or f"Dispute #{dispute.id} resolution", actor=actor)
            suspended = target.id

    audit(
        dispute,
        "resolved",
        actor=actor,
        details={
            "resolution_type": resolution_type,
            "refunded_pence": refunded,
            "released_pence": released,
            "suspended_user": suspended,
        },
    )
    logger.info(
        f"Dispute {dispute.id} resolved by {actor.email}: {resolution_type}, "
        f"refunded {refunded}p, released {released}p"
    )

    message = f"Dispute #{dispute.id} has been resolved: {dispute.get_resolution_type_display()}."
    if notes:
        message += f" {notes}"
    for party in (booking.client, booking.freelancer):
        send_notification(
            party,
            Notification.Type.DISPUTE_RESOLVED,
            "Dispute Resolved",
            message,
            {"dispute_id": dispute.id, "booking_id": booking.id, "resolution_type": resolution_type},
            email=True,
        )
    return dispute
