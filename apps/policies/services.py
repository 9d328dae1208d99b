"""Refund calculation and freelancer reliability tracking."""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.value_objects import percent_of

from .models import CancellationPolicy, FreelancerCancellation, ReliabilityConfig

logger = logging.getLogger(__name__)

DEFAULT_POLICIES = (
    (48, 100),
    (24, 50),
    (0, 0),
)

CANCELLED_BY_CLIENT = "client"
CANCELLED_BY_FREELANCER = "freelancer"


@dataclass(frozen=True)
class RefundCalculation:
    refund_percentage: int
    refund_amount_pence: int
    hours_before_service: int
    applied_policy: str

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CancellationStats:
    total_cancellations: int
    last_minute_cancellations: int
    is_at_risk: bool
    should_warn: bool
    should_suspend: bool

    def as_dict(self) -> dict:
        return asdict(self)


def last_minute_hours() -> int:
    return settings.MARKETPLACE.get("LAST_MINUTE_CANCELLATION_HOURS", 24)


def ensure_default_policies() -> None:
    """Seed the default refund tiers when none are configured."""
    if CancellationPolicy.objects.exists():
        return
    CancellationPolicy.objects.bulk_create(
        CancellationPolicy(hours_threshold=hours, refund_percentage=percent)
        for hours, percent in DEFAULT_POLICIES
    )
    logger.info("Default cancellation policies created")


def hours_until(start: datetime, moment: datetime) -> int:
    """Whole hours from ``moment`` to ``start``, rounded down."""
    return math.floor((start - moment).total_seconds() / 3600)


def calculate_refund(
    amount_pence: int,
    start: datetime,
    cancelled_at: datetime,
    cancelled_by: str,
) -> RefundCalculation:
    hours = hours_until(start, cancelled_at)

    if cancelled_by == CANCELLED_BY_FREELANCER:
        return RefundCalculation(100, amount_pence, hours, "freelancer_cancel_full_refund")

    ensure_default_policies()
    policies = list(
        CancellationPolicy.objects.filter(
            policy_type=CancellationPolicy.PolicyType.CLIENT_CANCEL,
        ).order_by("-hours_threshold")
    )

    applied = next((policy for policy in policies if hours >= policy.hours_threshold), None)
    if applied is None and policies:
        applied = policies[-1]
    if applied is None:
        return RefundCalculation(0, 0, hours, "no_refund")

    return RefundCalculation(
        applied.refund_percentage,
        percent_of(amount_pence, applied.refund_percentage),
        hours,
        applied.label,
    )


def track_freelancer_cancellation(freelancer, booking, hours_before_service: int) -> FreelancerCancellation:
    record = FreelancerCancellation.objects.create(
        freelancer=freelancer,
        booking=booking,
        hours_before_service=hours_before_service,
        is_last_minute=hours_before_service < last_minute_hours(),
    )
    logger.info(
        f"Freelancer {freelancer.email} cancelled booking {booking.id} "
        f"{hours_before_service}h before (last minute: {record.is_last_minute})"
    )
    return record


def get_freelancer_cancellation_stats(freelancer, *, now: datetime | None = None) -> CancellationStats:
    config = ReliabilityConfig.load()
    since = (now or timezone.now()) - timedelta(days=config.time_window_days)
    records = FreelancerCancellation.objects.filter(freelancer=freelancer, cancelled_at__gt=since)
    total = records.count()
    last_minute = records.filter(is_last_minute=True).count()
    return CancellationStats(
        total_cancellations=total,
        last_minute_cancellations=last_minute,
        is_at_risk=last_minute >= config.warning_threshold,
        should_warn=config.warning_threshold <= last_minute < config.suspension_threshold,
        should_suspend=last_minute >= config.suspension_threshold,
    )


def enforce_reliability(freelancer) -> str | None:
    """Apply the reliability rules after a freelancer cancellation.

    Returns the warning shown to the freelancer, if any. At the
    suspension threshold the account is suspended.
    """
    from apps.notifications.models import Notification
    from apps.notifications.services import send_notification
    from apps.users.models import CustomUser
    from apps.users.services import suspend_account

    stats = get_freelancer_cancellation_stats(freelancer)
    config = ReliabilityConfig.load()

    if stats.should_suspend:
        reason = (
            f"{stats.last_minute_cancellations} last-minute cancellations "
            f"in {config.time_window_days} days"
        )
        if freelancer.status != CustomUser.AccountStatus.SUSPENDED:
            suspend_account(freelancer, reason)
        return f"Your account has been suspended: {reason}."

    if stats.should_warn:
        warning = (
            f"You have {stats.last_minute_cancellations} last-minute cancellations in the last "
            f"{config.time_window_days} days. Reaching {config.suspension_threshold} will suspend your account."
        )
        send_notification(
            freelancer,
            Notification.Type.RELIABILITY_WARNING,
            "Reliability Warning",
            warning,
            stats.as_dict(),
        )
        return warning
    return None


@transaction.atomic
def replace_policies(tiers: list[dict]) -> list[CancellationPolicy]:
    CancellationPolicy.objects.all().delete()
    return CancellationPolicy.objects.bulk_create(
        CancellationPolicy(
            hours_threshold=tier["hours_threshold"],
            refund_percentage=tier["refund_percentage"],
        )
        for tier in tiers
    )
