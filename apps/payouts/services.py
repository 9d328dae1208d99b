"""Payout engine: amounts, scheduling, transfers and earnings."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, timedelta

from django.db import transaction  # type: ignore
from django.db.models import Min, Sum  # type: ignore
from django.utils import timezone  # type: ignore

from apps.availability.slots import js_weekday
from apps.finances.gateway import PaymentGatewayError
from shared.domain.value_objects import percent_of

from . import gateway
from .models import Payout, PayoutAccount, PayoutAuditLog, PayoutSchedule, PayoutSettings, ScheduleType

logger = logging.getLogger(__name__)

FRIDAY = 5


class PayoutError(Exception):
    """A payout cannot be created or processed in its current state."""


class PayoutAlreadyExistsError(PayoutError):
    pass


@dataclass(frozen=True)
class PayoutAmounts:
    service_amount_pence: int
    commission_amount_pence: int
    booking_fee_pence: int
    payout_amount_pence: int


def calculate_payout_amounts(service_amount_pence: int) -> PayoutAmounts:
    payout_settings = PayoutSettings.load()
    commission = percent_of(service_amount_pence, payout_settings.platform_commission_percent)
    fee = payout_settings.booking_fee_fixed_pence
    return PayoutAmounts(
        service_amount_pence=service_amount_pence,
        commission_amount_pence=commission,
        booking_fee_pence=fee,
        payout_amount_pence=max(service_amount_pence - commission - fee, 0),
    )


def next_friday(today: date) -> date:
    """The coming Friday; a week ahead when today is Friday."""
    days = (FRIDAY - js_weekday(today) + 7) % 7 or 7
    return today + timedelta(days=days)


def schedule_type_for(freelancer) -> str:
    schedule = PayoutSchedule.objects.filter(freelancer=freelancer).first()
    if schedule is not None:
        return schedule.schedule_type
    return PayoutSettings.load().default_payout_schedule


def scheduled_date_for(schedule_type: str, today: date) -> tuple[date, str]:
    if schedule_type == ScheduleType.PER_TRANSACTION:
        return today, Payout.Status.SCHEDULED
    friday = next_friday(today)
    if schedule_type == ScheduleType.BI_WEEKLY:
        friday += timedelta(days=7)
    return friday, Payout.Status.PENDING


def audit(payout: Payout, action: str, old_status: str, new_status: str, *, actor=None, details=None) -> None:
    PayoutAuditLog.objects.create(
        payout=payout,
        actor=actor,
        action=action,
        old_status=old_status or "",
        new_status=new_status or "",
        details=details or {},
    )


@transaction.atomic
def create_payout_record(freelancer, booking, amounts: PayoutAmounts, *, today: date | None = None) -> Payout:
    if Payout.objects.filter(booking=booking).exists():
        raise PayoutAlreadyExistsError(f"Payout already exists for booking {booking.id}")

    schedule_type = schedule_type_for(freelancer)
    scheduled_date, initial_status = scheduled_date_for(schedule_type, today or timezone.localdate())
    payout = Payout.objects.create(
        freelancer=freelancer,
        booking=booking,
        amount_pence=amounts.payout_amount_pence,
        service_amount_pence=amounts.service_amount_pence,
        commission_amount_pence=amounts.commission_amount_pence,
        booking_fee_pence=amounts.booking_fee_pence,
        status=initial_status,
        scheduled_date=scheduled_date,
    )
    audit(
        payout,
        "payout_created",
        "",
        initial_status,
        details={"schedule_type": schedule_type, "scheduled_date": scheduled_date.isoformat()},
    )
    logger.info(
        f"Payout {payout.id} of {payout.amount_pence}p created for booking {booking.id}, "
        f"{schedule_type} on {scheduled_date}"
    )
    return payout


def process_payout_now(payout: Payout, actor=None) -> Payout:
    """Transfer the payout to the freelancer's connected account.

    Raises:
        PayoutError: the freelancer, account or payout is not eligible.
        PaymentGatewayError: the transfer failed; the payout is marked failed.
    """
    freelancer = payout.freelancer
    if not freelancer.is_verified_freelancer:
        raise PayoutError("Only verified freelancers can receive payouts.")

    account = PayoutAccount.objects.filter(freelancer=freelancer).first()
    if account is None or not account.payouts_enabled:
        raise PayoutError("Payout account is not enabled.")

    if payout.status not in Payout.PROCESSABLE_STATUSES:
        raise PayoutError("Payout is not in a processable state.")

    old_status = payout.status
    payout.status = Payout.Status.PROCESSING
    payout.save(update_fields=["status", "updated_at"])
    audit(payout, "payout_processing", old_status, payout.status, actor=actor)

    try:
        transfer_id = gateway.create_transfer(account.stripe_account_id, payout.amount_pence, payout_id=payout.id)
    except PaymentGatewayError as exc:
        payout.status = Payout.Status.FAILED
        payout.error_message = str(exc)
        payout.save(update_fields=["status", "error_message", "updated_at"])
        audit(payout, "payout_failed", Payout.Status.PROCESSING, payout.status, actor=actor, details={"error": str(exc)})
        logger.error(f"Payout {payout.id} failed: {exc}")
        raise

    payout.status = Payout.Status.PAID
    payout.transfer_id = transfer_id
    payout.processed_date = timezone.now()
    payout.error_message = ""
    payout.save(update_fields=["status", "transfer_id", "processed_date", "error_message", "updated_at"])
    audit(
        payout,
        "payout_completed",
        Payout.Status.PROCESSING,
        payout.status,
        actor=actor,
        details={"transfer_id": transfer_id},
    )
    logger.info(f"Payout {payout.id} paid: {payout.amount_pence}p via {transfer_id}")
    return payout


def override_payout(payout: Payout, status: str, admin_notes: str, *, actor) -> Payout:
    old_status = payout.status
    payout.status = status
    payout.admin_notes = admin_notes
    payout.save(update_fields=["status", "admin_notes", "updated_at"])
    audit(payout, "payout_overridden", old_status, status, actor=actor, details={"admin_notes": admin_notes})
    logger.info(f"Payout {payout.id} overridden by {actor.email}: {old_status} -> {status}")
    return payout


def due_payouts(today: date | None = None):
    return Payout.objects.filter(
        status__in=Payout.PROCESSABLE_STATUSES,
        scheduled_date__lte=today or timezone.localdate(),
    ).select_related("freelancer").order_by("scheduled_date", "id")


def get_earnings(freelancer) -> dict:
    from apps.bookings.models import Booking
    from apps.finances.models import Payment

    payouts = Payout.objects.filter(freelancer=freelancer)
    total_earned = payouts.filter(status=Payout.Status.PAID).aggregate(total=Sum("amount_pence"))["total"]
    in_escrow = Payment.objects.filter(
        booking__freelancer=freelancer,
        booking__payment_status=Booking.PaymentStatus.PAID,
        escrow_status=Payment.EscrowStatus.HELD,
    ).aggregate(total=Sum("freelancer_payout_pence"))["total"]

    upcoming = payouts.filter(status__in=Payout.PROCESSABLE_STATUSES)
    next_date = upcoming.aggregate(first=Min("scheduled_date"))["first"]
    next_amount = 0
    if next_date is not None:
        next_amount = upcoming.filter(scheduled_date=next_date).aggregate(total=Sum("amount_pence"))["total"] or 0
    available = payouts.filter(status=Payout.Status.SCHEDULED).aggregate(total=Sum("amount_pence"))["total"]

    return {
        "total_earned_pence": total_earned or 0,
        "pending_in_escrow_pence": in_escrow or 0,
        "next_payout_amount_pence": next_amount,
        "next_payout_date": next_date,
        "available_balance_pence": available or 0,
    }


def open_payout_account(freelancer, *, refresh_url: str, return_url: str) -> tuple[PayoutAccount, str]:
    """Create (or reuse) the Connect account and return an onboarding link."""
    if not freelancer.is_verified_freelancer:
        raise PayoutError("Only verified freelancers can create payout accounts.")

    account = PayoutAccount.objects.filter(freelancer=freelancer).first()
    if account is None:
        account_id = gateway.create_connected_account(freelancer.email)
        account = PayoutAccount.objects.create(freelancer=freelancer, stripe_account_id=account_id)
        logger.info(f"Payout account {account_id} created for {freelancer.email}")
    url = gateway.create_account_link(account.stripe_account_id, refresh_url, return_url)
    return account, url


def refresh_account_status(account: PayoutAccount) -> PayoutAccount:
    state = gateway.retrieve_account_state(account.stripe_account_id)
    for key, value in asdict(state).items():
        setattr(account, key, value)
    account.save()
    return account
