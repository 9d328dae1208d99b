"""
Common Value Objects

Value objects used across multiple domains:
- Money: an amount in minor units (pence) with currency
- TimeRange: a half-open window of time (booking slot, blocked period)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from shared.domain.base import ValueObject


def percent_of(pence: int, percent) -> int:
    """Return ``percent`` % of ``pence`` rounded half-up to a whole penny."""
    value = Decimal(pence) * Decimal(str(percent)) / Decimal(100)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Stores integer pence so that fees and refunds never drift.
    """
    pence: int
    currency: str = 'GBP'

    def __post_init__(self):
        if not isinstance(self.pence, int):
            raise TypeError("Money is stored in whole pence")
        if self.pence < 0:
            raise ValueError("Amount cannot be negative")
        if self.currency not in ['GBP', 'EUR', 'USD']:
            raise ValueError(f"Unsupported currency: {self.currency}")

    def __add__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.pence + other.pence, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            raise TypeError("Can only subtract Money from Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot subtract different currencies: {self.currency} and {other.currency}")
        return Money(self.pence - other.pence, self.currency)

    def percentage(self, percent) -> 'Money':
        """Share of this amount, rounded half-up to the penny."""
        return Money(percent_of(self.pence, percent), self.currency)

    @property
    def major(self) -> Decimal:
        return (Decimal(self.pence) / Decimal(100)).quantize(Decimal('0.01'))

    def __str__(self):
        symbol = {'GBP': '£', 'EUR': '€', 'USD': '$'}[self.currency]
        return f"{symbol}{self.major:,.2f}"

    def __repr__(self):
        return f"Money({self.pence}, '{self.currency}')"


@dataclass(frozen=True)
class TimeRange(ValueObject):
    """
    Time range value object

    Represents [start, end): start is inclusive, end is exclusive, so
    back-to-back appointments do not overlap.
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start ({self.start}) must be before end ({self.end})")

    def overlaps_with(self, other: 'TimeRange') -> bool:
        """
        Check if this range overlaps with another

        Examples:
            - 10:00-11:00 overlaps with 10:30-11:30 -> True
            - 10:00-11:00 overlaps with 11:00-12:00 -> False (adjacent)
        """
        if not isinstance(other, TimeRange):
            raise TypeError("Can only check overlap with another TimeRange")
        return self.start < other.end and self.end > other.start

    def widened(self, minutes: int) -> 'TimeRange':
        """Range padded by ``minutes`` on both sides (booking buffers)."""
        if not minutes:
            return self
        pad = timedelta(minutes=minutes)
        return TimeRange(self.start - pad, self.end + pad)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def __str__(self):
        return f"{self.start:%d.%m.%Y %H:%M} - {self.end:%H:%M}"

    def __repr__(self):
        return f"TimeRange({self.start.isoformat()}, {self.end.isoformat()})"
