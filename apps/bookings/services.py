"""Domain services for booking workflows.

Each operation checks who may perform it and in which state, moves the
booking, writes an audit entry and notifies the other party. Violations
raise ``BookingError`` subclasses carrying the HTTP status the API
answers with.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore
from django.utils import timezone  # type: ignore

from apps.availability.slots import is_slot_available
from apps.catalog.models import Service
from apps.finances.gateway import PaymentIntentResult
from apps.finances.models import Payment
from apps.finances.services import open_payment, refund_booking
from apps.notifications.models import Notification
from apps.notifications.services import send_notification
from apps.policies.services import (
    CANCELLED_BY_CLIENT,
    RefundCalculation,
    calculate_refund,
    enforce_reliability,
    track_freelancer_cancellation,
)
from apps.users.models import CustomUser
from shared.domain.value_objects import Money

from .models import Booking, BookingAuditLog, RescheduleRequest
from .pricing import PriceBreakdown, calculate_booking_price

logger = logging.getLogger(__name__)

RESCHEDULE_REFUND_OFFER_HOURS = 24


class BookingError(Exception):
    """The booking cannot move in the requested way."""

    status_code = 400


class BookingPermissionError(BookingError):
    status_code = 403


class ServiceUnavailableError(BookingError):
    status_code = 404


class SlotUnavailableError(BookingError):
    pass


class RescheduleConflictError(BookingError):
    status_code = 409


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def _lock_freelancer_calendar(freelancer_id: int) -> None:
    """Serialise concurrent bookings for one freelancer."""
    list(_lock_queryset_if_possible(CustomUser.objects.filter(pk=freelancer_id)))


def _when(moment: datetime) -> str:
    return f"{timezone.localtime(moment):%d %b %Y %H:%M}"


def _clashes_with_other_bookings(booking: Booking, start: datetime, end: datetime) -> bool:
    return (
        Booking.objects.filter(
            freelancer_id=booking.freelancer_id,
            status__in=Booking.SLOT_BLOCKING_STATUSES,
            start_datetime__lt=end,
            end_datetime__gt=start,
        )
        .exclude(pk=booking.pk)
        .exists()
    )


# ============================================================================
# CREATE
# ============================================================================

@dataclass
class BookingCreation:
    booking: Booking
    price: PriceBreakdown
    payment_intent: PaymentIntentResult


def create_booking(
    client,
    *,
    service_id: int,
    start: datetime,
    location_type: str,
    client_address_line1: str = "",
    client_postcode: str = "",
    client_city: str = "",
    client_provides_own_materials: bool = False,
    notes: str = "",
    now: datetime | None = None,
) -> BookingCreation:
    if not client.is_verified:
        raise BookingPermissionError("Please verify your email address before making a booking.")
    if not client.is_account_active:
        raise BookingPermissionError("Your account is not active. Please contact support.")
    if location_type == Service.LocationType.FREELANCER_TRAVELS and not (
        client_address_line1 and client_postcode and client_city
    ):
        raise BookingError("Address is required when the freelancer travels to the client.")

    service = (
        Service.objects.select_related("freelancer")
        .filter(pk=service_id, is_active=True, freelancer__status=CustomUser.AccountStatus.ACTIVE)
        .first()
    )
    if service is None:
        raise ServiceUnavailableError("Service not found or not available.")
    if not service.supports(location_type):
        raise BookingError("Selected location type is not supported for this service.")

    now = now or timezone.now()
    with transaction.atomic():
        _lock_freelancer_calendar(service.freelancer_id)
        if not is_slot_available(service, start, now=now):
            raise SlotUnavailableError("selected time slot is not available")

        price = calculate_booking_price(
            service,
            location_type,
            client_provides_own_materials=client_provides_own_materials,
        )
        booking = Booking.objects.create(
            client=client,
            freelancer=service.freelancer,
            service=service,
            start_datetime=start,
            end_datetime=start + timezone.timedelta(minutes=service.duration_minutes),
            location_type=location_type,
            client_address_line1=client_address_line1,
            client_postcode=client_postcode,
            client_city=client_city,
            client_provides_own_materials=client_provides_own_materials,
            notes=notes,
            price_base_pence=price.base_price_pence,
            price_materials_pence=price.materials_price_pence,
            price_travel_pence=price.travel_price_pence,
            platform_fee_pence=price.platform_fee_pence,
            total_price_pence=price.total_pence,
            expires_at=now + timezone.timedelta(hours=settings.MARKETPLACE.get("BOOKING_HOLD_HOURS", 24)),
        )
        BookingAuditLog.record(
            booking,
            "created",
            user=client,
            metadata={"service_id": service.id, "location_type": location_type},
        )
        _, intent = open_payment(booking)

    logger.info(
        f"Booking {booking.booking_code} created: client {client.email}, freelancer "
        f"{service.freelancer.email}, service {service.id}, {price.total_pence}p"
    )
    return BookingCreation(booking, price, intent)


# ============================================================================
# FREELANCER DECISION
# ============================================================================

def _require_freelancer(booking: Booking, user) -> None:
    if booking.freelancer_id != user.id:
        raise BookingPermissionError("Only the freelancer of this booking can do this.")


@transaction.atomic
def accept_booking(booking: Booking, user) -> Booking:
    _require_freelancer(booking, user)
    if booking.status != Booking.Status.PENDING:
        raise BookingError("Only pending bookings can be accepted.")
    if not booking.is_paid:
        raise BookingError("The client has not completed payment yet.")

    booking.mark_confirmed()
    BookingAuditLog.record(booking, "accepted", user=user, previous_status=Booking.Status.PENDING)
    logger.info(f"Booking {booking.booking_code} accepted by {user.email}")
    send_notification(
        booking.client,
        Notification.Type.BOOKING_ACCEPTED,
        "Booking Confirmed",
        f"{booking.freelancer.display_name} accepted your booking for {booking.service.name} "
        f"on {_when(booking.start_datetime)}.",
        {"booking_id": booking.id},
        email=True,
    )
    return booking


@transaction.atomic
def decline_booking(booking: Booking, user, reason: str = "") -> Booking:
    _require_freelancer(booking, user)
    if booking.status != Booking.Status.PENDING:
        raise BookingError("Only pending bookings can be declined.")

    refunded = booking.is_paid
    if refunded:
        refund_booking(booking, actor=user, audit_action=None)

    booking.mark_declined(reason)
    BookingAuditLog.record(
        booking,
        "declined",
        user=user,
        previous_status=Booking.Status.PENDING,
        metadata={"reason": reason, "refunded": refunded},
    )
    logger.info(f"Booking {booking.booking_code} declined by {user.email}")
    message = f"{booking.freelancer.display_name} could not take your booking for {booking.service.name}."
    if refunded:
        message += " Your payment has been refunded in full."
    send_notification(
        booking.client,
        Notification.Type.BOOKING_DECLINED,
        "Booking Declined",
        message,
        {"booking_id": booking.id, "reason": reason},
        email=True,
    )
    return booking


# ============================================================================
# CANCELLATION
# ============================================================================

@dataclass
class CancellationOutcome:
    booking: Booking
    refund: RefundCalculation
    refunded_pence: int
    reliability_warning: str | None = None


@transaction.atomic
def cancel_booking(booking: Booking, user, reason: str = "", *, now: datetime | None = None) -> CancellationOutcome:
    party = booking.party_of(user)
    if party is None:
        raise BookingPermissionError("You can only cancel your own bookings.")
    if booking.is_closed:
        raise BookingError(f"A {booking.status} booking cannot be cancelled.")

    now = now or timezone.now()
    previous_status = booking.status
    calculation = calculate_refund(booking.total_price_pence, booking.start_datetime, now, party)

    refunded = 0
    if booking.is_paid and calculation.refund_amount_pence > 0:
        refund_booking(booking, calculation.refund_amount_pence, actor=user, audit_action=None)
        refunded = calculation.refund_amount_pence

    booking.mark_cancelled(
        party,
        reason,
        refund_percentage=calculation.refund_percentage,
        refund_amount_pence=refunded,
    )

    warning = None
    if party != CANCELLED_BY_CLIENT:
        track_freelancer_cancellation(user, booking, calculation.hours_before_service)
        warning = enforce_reliability(user)

    BookingAuditLog.record(
        booking,
        "cancelled",
        user=user,
        previous_status=previous_status,
        metadata={
            "cancelled_by": party,
            "reason": reason,
            "refund_percentage": calculation.refund_percentage,
            "refund_amount_pence": refunded,
            "applied_policy": calculation.applied_policy,
        },
    )
    logger.info(
        f"Booking {booking.booking_code} cancelled by {party} {user.email}: "
        f"{calculation.applied_policy}, refunded {refunded}p"
    )

    other = booking.other_party(user)
    message = f"Your booking for {booking.service.name} on {_when(booking.start_datetime)} was cancelled by the {party}."
    if refunded and other.id == booking.client_id:
        message += f" {Money(refunded)} will be refunded to you."
    send_notification(
        other,
        Notification.Type.BOOKING_CANCELLED,
        "Booking Cancelled",
        message,
        {"booking_id": booking.id, "reason": reason},
        email=True,
    )
    return CancellationOutcome(booking, calculation, refunded, warning)


# ============================================================================
# SYSTEM TRANSITIONS
# ============================================================================

@transaction.atomic
def expire_booking(booking: Booking) -> Booking:
    """Expire a pending booking whose hold ran out, refunding any payment."""
    refunded = False
    payment = Payment.objects.filter(booking=booking).first()
    if booking.is_paid and payment is not None and payment.escrow_status == Payment.EscrowStatus.HELD:
        refund_booking(booking, reason="requested_by_customer", audit_action=None)
        refunded = True

    booking.mark_expired()
    BookingAuditLog.record(
        booking,
        "expired",
        previous_status=Booking.Status.PENDING,
        metadata={"refunded": refunded},
    )
    logger.info(f"Booking {booking.booking_code} expired (refunded: {refunded})")

    client_message = "The freelancer did not respond in time, so your booking request has expired."
    if refunded:
        client_message += " Your payment has been refunded in full."
    send_notification(
        booking.client,
        Notification.Type.BOOKING_EXPIRED,
        "Booking Expired",
        client_message,
        {"booking_id": booking.id},
        email=True,
    )
    send_notification(
        booking.freelancer,
        Notification.Type.BOOKING_EXPIRED,
        "Booking Request Expired",
        f"The booking request for {booking.service.name} on {_when(booking.start_datetime)} expired.",
        {"booking_id": booking.id},
    )
    return booking


def start_booking(booking: Booking) -> Booking:
    booking.mark_in_progress()
    BookingAuditLog.record(booking, "started", previous_status=Booking.Status.CONFIRMED)
    logger.info(f"Booking {booking.booking_code} started")
    return booking


# ============================================================================
# RESCHEDULING
# ============================================================================

@transaction.atomic
def request_reschedule(
    booking: Booking,
    user,
    new_start: datetime,
    new_end: datetime,
    reason: str = "",
    *,
    now: datetime | None = None,
) -> RescheduleRequest:
    party = booking.party_of(user)
    if party is None:
        raise BookingPermissionError("You can only reschedule your own bookings.")
    if booking.status not in Booking.SLOT_BLOCKING_STATUSES:
        raise BookingError("Only confirmed or pending bookings can be rescheduled.")
    if booking.reschedule_requests.filter(status=RescheduleRequest.Status.PENDING).exists():
        raise RescheduleConflictError("A pending reschedule request already exists for this booking.")
    if new_start >= new_end:
        raise BookingError("End time must be after start time.")
    if new_start < (now or timezone.now()):
        raise BookingError("Cannot reschedule to a past time.")

    request = RescheduleRequest.objects.create(
        booking=booking,
        requested_by=user,
        new_start_datetime=new_start,
        new_end_datetime=new_end,
        reason=reason,
    )
    logger.info(f"Reschedule {request.id} of booking {booking.booking_code} requested by {user.email}")
    send_notification(
        booking.other_party(user),
        Notification.Type.RESCHEDULE_REQUEST,
        "Reschedule Request",
        f"The {party} has requested to reschedule your booking from {_when(booking.start_datetime)} "
        f"to {_when(new_start)}.",
        {"booking_id": booking.id, "reschedule_request_id": request.id},
    )
    return request


@dataclass
class RescheduleResponse:
    request: RescheduleRequest
    refund_offer: RefundCalculation | None = None


@transaction.atomic
def respond_to_reschedule(
    request: RescheduleRequest,
    user,
    accept: bool,
    note: str = "",
    *,
    now: datetime | None = None,
) -> RescheduleResponse:
    booking = request.booking
    if booking.party_of(user) is None:
        raise BookingPermissionError("You can only respond to reschedules of your own bookings.")
    if request.requested_by_id == user.id:
        raise BookingPermissionError("You cannot respond to your own reschedule request.")
    if request.status != RescheduleRequest.Status.PENDING:
        raise BookingError("This reschedule request has already been answered.")

    now = now or timezone.now()
    request.status = RescheduleRequest.Status.ACCEPTED if accept else RescheduleRequest.Status.REJECTED
    request.responded_by = user
    request.responded_at = now
    request.response_note = note

    refund_offer = None
    if accept:
        if booking.status not in Booking.SLOT_BLOCKING_STATUSES:
            raise BookingError("The booking can no longer be rescheduled.")
        _lock_freelancer_calendar(booking.freelancer_id)
        if _clashes_with_other_bookings(booking, request.new_start_datetime, request.new_end_datetime):
            raise SlotUnavailableError("The new time clashes with another booking.")
        old_start, old_end = booking.start_datetime, booking.end_datetime
        booking.start_datetime = request.new_start_datetime
        booking.end_datetime = request.new_end_datetime
        if booking.auto_confirm_at and old_end:
            booking.auto_confirm_at += booking.end_datetime - old_end
        booking.reminder_sent_at = None
        booking.save(update_fields=["start_datetime", "end_datetime", "auto_confirm_at", "reminder_sent_at", "updated_at"])
        BookingAuditLog.record(
            booking,
            "rescheduled",
            user=user,
            previous_status=booking.status,
            metadata={
                "reschedule_request_id": request.id,
                "old_start": old_start.isoformat(),
                "old_end": old_end.isoformat(),
                "new_start": booking.start_datetime.isoformat(),
                "new_end": booking.end_datetime.isoformat(),
            },
        )
        title = "Reschedule Accepted"
        message = f"Your booking has been rescheduled to {_when(booking.start_datetime)}."
    else:
        hours = (booking.start_datetime - now).total_seconds() / 3600
        if hours >= RESCHEDULE_REFUND_OFFER_HOURS:
            refund_offer = calculate_refund(booking.total_price_pence, booking.start_datetime, now, CANCELLED_BY_CLIENT)
        title = "Reschedule Declined"
        message = "Your reschedule request was declined."
        if note:
            message += f" Note: {note}"

    request.save()
    logger.info(f"Reschedule {request.id} of booking {booking.booking_code} {request.status} by {user.email}")
    send_notification(
        request.requested_by,
        Notification.Type.RESCHEDULE_RESPONSE,
        title,
        message,
        {"booking_id": booking.id, "reschedule_request_id": request.id},
    )
    return RescheduleResponse(request, refund_offer)
