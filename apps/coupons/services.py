"""Coupon validation."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime

from django.utils import timezone  # type: ignore

from shared.domain.value_objects import Money

from .models import DiscountCoupon

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CouponCheck:
    valid: bool
    discount_amount_pence: int
    message: str

    def as_dict(self) -> dict:
        return asdict(self)


def _rejected(message: str) -> CouponCheck:
    return CouponCheck(False, 0, message)


def validate_coupon(code: str, booking_amount_pence: int, user, *, now: datetime | None = None) -> CouponCheck:
    """Check a coupon against a booking amount without redeeming it."""
    from apps.bookings.models import Booking

    coupon = DiscountCoupon.objects.filter(code=code.strip().upper()).first()
    if coupon is None:
        return _rejected("Invalid coupon code.")
    if not coupon.is_active:
        return _rejected("This coupon is no longer active.")

    now = now or timezone.now()
    if now < coupon.valid_from:
        return _rejected("This coupon is not valid yet.")
    if now > coupon.valid_until:
        return _rejected("This coupon has expired.")
    if coupon.is_exhausted:
        return _rejected("This coupon has reached its usage limit.")
    if booking_amount_pence < coupon.min_booking_amount_pence:
        return _rejected(f"Minimum booking amount is {Money(coupon.min_booking_amount_pence)}.")
    if coupon.applicable_to == DiscountCoupon.ApplicableTo.NEW_USERS and (
        Booking.objects.filter(client=user).exclude(status=Booking.Status.CANCELLED).exists()
    ):
        return _rejected("This coupon is only for new customers.")

    discount = coupon.discount_for(booking_amount_pence)
    logger.info(f"Coupon {coupon.code} valid for {user.email}: {discount}p off {booking_amount_pence}p")
    return CouponCheck(True, discount, "Coupon applied.")
