"""
Availability Results

What the conflict resolver answers for an interval (AvailabilityResult) and
for each night of it (NightAvailability). Stay-length rules are reported
beside the capacity answer (StayViolation), never folded into it.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Optional, Tuple

from shared.domain.base import ValueObject
from shared.domain.value_objects import Interval

from apps.inventory.domain.entities import BookableUnit, DateOverride


class UnavailableReason(Enum):
    """Why an interval cannot be booked, in order of precedence"""
    BLOCKED = 'blocked'
    INSUFFICIENT_CAPACITY = 'insufficient_capacity'


class StayRule(Enum):
    BELOW_MIN_STAY = 'below_min_stay'
    ABOVE_MAX_STAY = 'above_max_stay'


@dataclass(frozen=True)
class StayViolation(ValueObject):
    """A stay of `nights` nights breaking the minimum or maximum `limit`"""
    rule: StayRule
    nights: int
    limit: int

    def __str__(self):
        if self.rule is StayRule.BELOW_MIN_STAY:
            return f"Minimum {self.limit} night(s) required, {self.nights} requested"
        return f"Maximum {self.limit} night(s) allowed, {self.nights} requested"


def check_stay(
    unit: BookableUnit,
    dates: Interval,
    overrides: Optional[Dict[date, DateOverride]] = None,
) -> Optional[StayViolation]:
    """Stay-length rule broken by `dates`, judged on its arrival night"""
    override = (overrides or {}).get(dates.start)
    nights = len(dates)
    minimum = unit.minimum_stay_for(dates.start, override)
    if nights < minimum:
        return StayViolation(StayRule.BELOW_MIN_STAY, nights, minimum)
    maximum = unit.maximum_stay_for(dates.start, override)
    if maximum is not None and nights > maximum:
        return StayViolation(StayRule.ABOVE_MAX_STAY, nights, maximum)
    return None


@dataclass(frozen=True)
class AvailabilityResult(ValueObject):
    """
    Answer to "can `requested_quantity` units be booked for `dates`?"

    available is exactly remaining_capacity >= requested_quantity.
    remaining_capacity is 0 whenever a blocked period overlaps the interval,
    otherwise the smallest free capacity of its nights. A stay-length rule
    broken by the interval is reported in stay_violation; quote and commit
    refuse such stays.
    """
    unit_id: str
    dates: Interval
    available: bool
    remaining_capacity: int
    capacity: int
    requested_quantity: int = 1
    conflicts: Tuple = ()
    blocks: Tuple = ()
    reason: Optional[UnavailableReason] = None
    stay_violation: Optional[StayViolation] = None

    @property
    def reason_code(self) -> Optional[str]:
        return self.reason.value if self.reason is not None else None

    @property
    def reserved_quantity(self) -> int:
        return sum(booking.quantity for booking in self.conflicts)

    @property
    def bookable(self) -> bool:
        return self.available and self.stay_violation is None


@dataclass(frozen=True)
class NightAvailability(ValueObject):
    """Free capacity of a single night, as shown on an availability calendar"""
    night: date
    capacity: int
    reserved: int
    remaining: int
    blocked: bool = False

    @property
    def available(self) -> bool:
        return self.remaining > 0
