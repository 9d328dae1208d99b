"""Slot generation.

Turns a freelancer's weekly rules into bookable start times for one
date, removing times that clash with existing bookings (padded by the
freelancer's buffer), blocked exceptions, the minimum lead time and the
daily booking cap. All wall-clock times are in the project TIME_ZONE.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.value_objects import TimeRange

from .models import AvailabilityException, AvailabilityRule, AvailabilitySettings

logger = logging.getLogger(__name__)

SLOT_MATCH_TOLERANCE = timedelta(seconds=60)


def slot_interval() -> timedelta:
    return timedelta(minutes=settings.MARKETPLACE.get("SLOT_INTERVAL_MINUTES", 15))


def js_weekday(day: date) -> int:
    """Weekday counted from Sunday (0) to Saturday (6)."""
    return day.isoweekday() % 7


def _at(day: date, moment: time) -> datetime:
    return timezone.make_aware(datetime.combine(day, moment), timezone.get_default_timezone())


@dataclass
class SlotResult:
    slots: list[datetime] = field(default_factory=list)
    reason: str | None = None

    def isoformat(self) -> list[str]:
        return [slot.isoformat() for slot in self.slots]


def _blocking_bookings(freelancer, day_start: datetime, day_end: datetime, exclude_booking_id=None):
    from apps.bookings.models import Booking

    qs = Booking.objects.filter(
        freelancer=freelancer,
        status__in=Booking.SLOT_BLOCKING_STATUSES,
        start_datetime__lt=day_end,
        end_datetime__gt=day_start,
    )
    if exclude_booking_id is not None:
        qs = qs.exclude(pk=exclude_booking_id)
    return list(qs.values_list("start_datetime", "end_datetime"))


def _blocked_ranges(freelancer, day: date, day_start: datetime, day_end: datetime) -> list[TimeRange]:
    ranges = []
    exceptions = AvailabilityException.objects.filter(
        freelancer=freelancer,
        date=day,
        exception_type=AvailabilityException.ExceptionType.BLOCKED,
    )
    for exception in exceptions:
        if exception.is_full_day:
            ranges.append(TimeRange(day_start, day_end))
        elif exception.start_time < exception.end_time:
            ranges.append(TimeRange(_at(day, exception.start_time), _at(day, exception.end_time)))
    return ranges


def generate_available_slots(
    freelancer,
    day: date,
    duration_minutes: int,
    min_lead_time_hours: int = 0,
    max_bookings_per_day: int | None = None,
    *,
    buffer_minutes: int = 0,
    now: datetime | None = None,
    exclude_booking_id=None,
) -> SlotResult:
    """Bookable start times for ``freelancer`` on ``day``, sorted."""
    now = now or timezone.now()
    rules = AvailabilityRule.objects.filter(
        freelancer=freelancer,
        day_of_week=js_weekday(day),
        is_active=True,
    ).order_by("start_time")
    if not rules:
        return SlotResult(reason="no_rules")

    day_start = _at(day, time.min)
    day_end = day_start + timedelta(days=1)

    bookings = _blocking_bookings(freelancer, day_start, day_end, exclude_booking_id)
    if max_bookings_per_day is not None:
        starting_today = sum(1 for start, _ in bookings if day_start <= start < day_end)
        if starting_today >= max_bookings_per_day:
            return SlotResult(reason="max_bookings_reached")

    busy = [TimeRange(start, end).widened(buffer_minutes) for start, end in bookings]
    blocked = _blocked_ranges(freelancer, day, day_start, day_end)
    earliest = now + timedelta(hours=min_lead_time_hours)
    duration = timedelta(minutes=duration_minutes)
    step = slot_interval()

    found: set[datetime] = set()
    for rule in rules:
        window_end = _at(day, rule.end_time)
        cursor = _at(day, rule.start_time)
        while cursor + duration <= window_end:
            candidate = TimeRange(cursor, cursor + duration)
            if (
                cursor >= earliest
                and not any(candidate.overlaps_with(other) for other in busy)
                and not any(candidate.overlaps_with(other) for other in blocked)
            ):
                found.add(cursor)
            cursor += step

    return SlotResult(slots=sorted(found), reason=None if found else "fully_booked")


def settings_for(freelancer) -> AvailabilitySettings:
    config, _ = AvailabilitySettings.objects.get_or_create(freelancer=freelancer)
    return config


def slots_for_service(service, day: date, *, now: datetime | None = None, exclude_booking_id=None) -> SlotResult:
    """Slots for a service, applying the freelancer's availability settings."""
    config = settings_for(service.freelancer)
    return generate_available_slots(
        service.freelancer,
        day,
        service.duration_minutes,
        config.min_lead_time_hours,
        config.max_bookings_per_day,
        buffer_minutes=config.buffer_minutes,
        now=now,
        exclude_booking_id=exclude_booking_id,
    )


def is_slot_available(service, start: datetime, *, now: datetime | None = None, exclude_booking_id=None) -> bool:
    """Whether ``start`` matches a generated slot within a minute."""
    local_day = timezone.localtime(start).date()
    result = slots_for_service(service, local_day, now=now, exclude_booking_id=exclude_booking_id)
    matched = any(abs(slot - start) <= SLOT_MATCH_TOLERANCE for slot in result.slots)
    if not matched:
        logger.info(
            f"Slot {start.isoformat()} unavailable for service {service.id} ({result.reason or 'no match'})"
        )
    return matched
