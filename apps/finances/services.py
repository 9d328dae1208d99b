"""Payment and escrow services.

A booking's money moves through one ``Payment``: the intent is opened
when the booking is created, the webhook marks it paid, and it then
leaves escrow either to the freelancer (confirmation, auto-confirmation,
dispute release) or back to the client (refund).
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from django.db import transaction  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.models import Booking, BookingAuditLog
from apps.notifications.models import Notification
from apps.notifications.services import send_notification
from apps.payouts.models import PayoutSettings
from apps.payouts.services import PayoutAlreadyExistsError, calculate_payout_amounts, create_payout_record
from shared.domain.value_objects import Money

from . import gateway
from .models import Payment

logger = logging.getLogger(__name__)

REFUNDABLE_PAYMENT_STATUSES = (Booking.PaymentStatus.PAID, Booking.PaymentStatus.PARTIALLY_REFUNDED)
RELEASABLE_BOOKING_STATUSES = (Booking.Status.CONFIRMED, Booking.Status.IN_PROGRESS)


class PaymentError(Exception):
    """The payment cannot be changed in the requested way."""


class EscrowStateError(PaymentError):
    """Escrow is not in a state that allows the operation."""


def payment_for(booking: Booking) -> Payment:
    try:
        return booking.payment
    except Payment.DoesNotExist as exc:
        raise PaymentError("No payment found for this booking.") from exc


# ============================================================================
# OPENING A PAYMENT
# ============================================================================

def open_payment(booking: Booking) -> tuple[Payment, gateway.PaymentIntentResult]:
    """Create the payment intent and the escrow ``Payment`` for a new booking."""
    intent = gateway.create_payment_intent(
        booking_id=booking.id,
        amount_pence=booking.total_price_pence,
        platform_fee_pence=booking.platform_fee_pence,
        metadata={"client_id": booking.client_id, "freelancer_id": booking.freelancer_id},
    )
    payment = Payment.objects.create(
        booking=booking,
        payment_intent_id=intent.payment_intent_id,
        amount_pence=booking.total_price_pence,
        platform_fee_pence=booking.platform_fee_pence,
        freelancer_payout_pence=booking.total_price_pence - booking.platform_fee_pence,
        metadata={"client_id": booking.client_id, "freelancer_id": booking.freelancer_id},
    )
    booking.set_payment_status(Booking.PaymentStatus.PAYMENT_PENDING)
    logger.info(f"Payment {payment.payment_intent_id} opened for booking {booking.id}: {payment.amount_pence}p")
    return payment, intent


# ============================================================================
# REFUNDS
# ============================================================================

def refund_booking(
    booking: Booking,
    amount_pence: int | None = None,
    *,
    actor=None,
    reason: str = "requested_by_customer",
    settle: bool = True,
    audit_action: str | None = "refunded",
) -> Payment:
    """Refund part or all of a booking's payment.

    ``settle`` closes the escrow (``refunded``) even after a partial
    refund; without it a partial refund leaves the remainder held.

    Raises:
        PaymentError: nothing is refundable or the amount is out of range.
        EscrowStateError: the funds were already released or refunded.
    """
    payment = payment_for(booking)
    if booking.payment_status not in REFUNDABLE_PAYMENT_STATUSES:
        raise PaymentError("Booking has not been paid.")
    if payment.escrow_status == Payment.EscrowStatus.RELEASED:
        raise EscrowStateError("Payment already released to freelancer.")
    if payment.escrow_status == Payment.EscrowStatus.REFUNDED:
        raise EscrowStateError("Payment already refunded.")

    amount = payment.refundable_pence if amount_pence is None else amount_pence
    if amount <= 0:
        raise PaymentError("Refund amount must be positive.")
    if amount > payment.refundable_pence:
        raise PaymentError("Refund amount exceeds the amount paid.")

    result = gateway.create_refund(
        payment.payment_intent_id,
        amount,
        reason=reason,
        metadata={"booking_id": booking.id},
    )
    payment.record_refund(result.refund_id, result.status, amount)
    if not settle and not payment.is_fully_refunded:
        payment.set_escrow_status(Payment.EscrowStatus.HELD)

    booking.set_payment_status(
        Booking.PaymentStatus.REFUNDED if payment.is_fully_refunded else Booking.PaymentStatus.PARTIALLY_REFUNDED
    )
    if audit_action:
        BookingAuditLog.record(
            booking,
            audit_action,
            user=actor,
            previous_status=booking.status,
            metadata={"refund_id": result.refund_id, "amount_pence": amount, "reason": reason},
        )
    logger.info(f"Refunded {amount}p of booking {booking.id} ({result.refund_id})")
    return payment


# ============================================================================
# ESCROW RELEASE
# ============================================================================

def create_payout_for(booking: Booking, service_amount_pence: int):
    """Record the freelancer's payout; an existing payout is left alone."""
    amounts = calculate_payout_amounts(service_amount_pence)
    try:
        return create_payout_record(booking.freelancer, booking, amounts)
    except PayoutAlreadyExistsError as exc:
        logger.warning(f"Payout not created for booking {booking.id}: {exc}")
        return None


def releasable_amount(payment: Payment) -> int:
    return max(payment.amount_pence - payment.refund_amount_pence - payment.platform_fee_pence, 0)


@transaction.atomic
def release_escrow(booking: Booking, *, actor=None) -> Payment:
    """Complete the booking and release its escrow to the freelancer.

    ``actor=None`` means the system released it (auto-confirmation).
    """
    if booking.status not in RELEASABLE_BOOKING_STATUSES:
        raise PaymentError("Only confirmed or in-progress bookings can be confirmed.")
    if booking.payment_status not in REFUNDABLE_PAYMENT_STATUSES:
        raise PaymentError("Booking has not been paid.")
    payment = payment_for(booking)
    if payment.escrow_status != Payment.EscrowStatus.HELD:
        raise EscrowStateError(f"Escrow is {payment.escrow_status}, not held.")

    previous_status = booking.status
    payment.release_escrow()
    booking.mark_completed()
    BookingAuditLog.record(
        booking,
        "service_confirmed",
        user=actor,
        previous_status=previous_status,
        metadata={"escrow_released": True, "auto_confirmed": actor is None},
    )
    create_payout_for(booking, releasable_amount(payment))
    logger.info(f"Escrow for booking {booking.id} released ({'auto' if actor is None else actor.email})")

    if actor is None:
        message = "Service auto-confirmed after the confirmation window. Your payment has been released."
    else:
        message = "The client has confirmed service completion. Your payment has been released."
    send_notification(
        booking.freelancer,
        Notification.Type.PAYMENT_RELEASED,
        "Payment Released",
        message,
        {"booking_id": booking.id},
    )
    if actor is None:
        send_notification(
            booking.client,
            Notification.Type.SYSTEM,
            "Service Confirmed",
            "Your booking was automatically confirmed. If there are any issues, please contact support.",
            {"booking_id": booking.id},
        )
    return payment


def auto_confirm_candidates(now=None):
    from apps.disputes.models import Dispute

    now = now or timezone.now()
    unresolved = Dispute.objects.exclude(status=Dispute.Status.RESOLVED).values("booking_id")
    return (
        Booking.objects.filter(
            auto_confirm_at__lte=now,
            status__in=RELEASABLE_BOOKING_STATUSES,
            payment_status__in=REFUNDABLE_PAYMENT_STATUSES,
            payment__escrow_status=Payment.EscrowStatus.HELD,
        )
        .exclude(id__in=unresolved)
        .select_related("client", "freelancer", "payment")
    )


# ============================================================================
# WEBHOOK
# ============================================================================

def _payment_by_intent(intent_id: str | None) -> Payment | None:
    if not intent_id:
        return None
    payment = Payment.objects.select_related("booking").filter(payment_intent_id=intent_id).first()
    if payment is None:
        logger.warning(f"Webhook references unknown payment intent {intent_id}")
    return payment


def handle_payment_succeeded(data: dict[str, Any]) -> None:
    payment = _payment_by_intent(data.get("id"))
    if payment is None:
        return
    booking = payment.booking
    payment.mark_succeeded(data.get("latest_charge") or "")

    booking.payment_status = Booking.PaymentStatus.PAID
    hours = PayoutSettings.load().auto_confirm_timeout_hours
    booking.auto_confirm_at = booking.end_datetime + timedelta(hours=hours)
    booking.save(update_fields=["payment_status", "auto_confirm_at", "updated_at"])
    BookingAuditLog.record(booking, "payment_succeeded", previous_status=booking.status)
    logger.info(f"Booking {booking.id} paid ({payment.payment_intent_id})")

    if booking.is_closed:
        logger.warning(f"Payment arrived for closed booking {booking.id}; refunding")
        refund_booking(booking, reason="requested_by_customer", audit_action="refunded")
        return

    send_notification(
        booking.freelancer,
        Notification.Type.BOOKING_REQUEST,
        "New Paid Booking Request",
        f"{booking.client.display_name} has booked and paid for {booking.service.name} on "
        f"{timezone.localtime(booking.start_datetime):%d %b %Y %H:%M}. Please review and accept.",
        {"booking_id": booking.id},
        email=True,
    )
    send_notification(
        booking.client,
        Notification.Type.PAYMENT_RECEIVED,
        "Payment Confirmed",
        f"Your payment of {Money(payment.amount_pence)} has been processed successfully. "
        "Your funds are held securely until the service is completed.",
        {"booking_id": booking.id},
    )


def handle_payment_failed(data: dict[str, Any]) -> None:
    payment = _payment_by_intent(data.get("id"))
    if payment is None:
        return
    payment.mark_failed()
    payment.booking.set_payment_status(Booking.PaymentStatus.PAYMENT_FAILED)
    logger.info(f"Payment failed for booking {payment.booking_id}")
    send_notification(
        payment.booking.client,
        Notification.Type.PAYMENT_FAILED,
        "Payment Failed",
        "Your payment could not be processed. Please try again.",
        {"booking_id": payment.booking_id},
    )


def handle_charge_refunded(data: dict[str, Any]) -> None:
    payment = _payment_by_intent(data.get("payment_intent"))
    if payment is None:
        return
    refunds = (data.get("refunds") or {}).get("data") or []
    latest = refunds[0] if refunds else {}

    payment.refund_amount_pence = int(data.get("amount_refunded") or 0)
    payment.refund_id = latest.get("id", payment.refund_id)
    payment.refund_status = latest.get("status", "succeeded")
    payment.refunded_at = timezone.now()
    # A partial refund leaves the remainder in escrow for the freelancer.
    if payment.is_fully_refunded:
        payment.escrow_status = Payment.EscrowStatus.REFUNDED
        payment.status = Payment.Status.REFUNDED
    payment.save()

    booking = payment.booking
    booking.set_payment_status(
        Booking.PaymentStatus.REFUNDED if payment.is_fully_refunded else Booking.PaymentStatus.PARTIALLY_REFUNDED
    )
    send_notification(
        booking.client,
        Notification.Type.REFUND_ISSUED,
        "Refund Processed",
        f"Your {'full' if payment.is_fully_refunded else 'partial'} refund has been processed.",
        {"booking_id": booking.id, "amount_pence": payment.refund_amount_pence},
    )


WEBHOOK_HANDLERS = {
    "payment_intent.succeeded": handle_payment_succeeded,
    "payment_intent.payment_failed": handle_payment_failed,
    "charge.refunded": handle_charge_refunded,
}


def handle_webhook_event(event: dict[str, Any]) -> None:
    handler = WEBHOOK_HANDLERS.get(event["type"])
    if handler is None:
        logger.info(f"Webhook event {event['id']} of type {event['type']} stored without handling")
        return
    handler(event.get("data", {}).get("object", {}))


def visible_payments(user):
    """Payments of the bookings a user takes part in."""
    from apps.users.api.permissions import is_platform_admin

    qs = Payment.objects.select_related("booking")
    if is_platform_admin(user):
        return qs
    return qs.filter(Q(booking__client=user) | Q(booking__freelancer=user))
