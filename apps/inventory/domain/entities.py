"""
Inventory Domain Entities

Read-only snapshots of a bookable unit and its calendar, as seen by the
availability and pricing engine:
- BookableUnit: capacity and static price components of a unit
- FeeRule: one entry of the fee schedule (a tagged variant on FeeBasis)
- SeasonalRate: date-bound adjustment of the base rate
- SpecialEvent: date-bound multiplier of the base rate (festivals, holidays)
- DiscountRule: stay-length or lead-time discount
- DateOverride: owner settings for one night (price, units, stay limits)
- BlockedPeriod: owner or sync declared unavailability
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from shared.domain.base import ValueObject
from shared.domain.value_objects import Interval, Money, round_half_up

DEFAULT_WEEKEND_DAYS = frozenset({4, 5})
WEEKDAYS = frozenset(range(7))


def check_weekdays(days, what: str = 'weekday') -> FrozenSet[int]:
    """Weekday numbers as a frozenset; Monday == 0, Sunday == 6"""
    days = frozenset(days)
    invalid = sorted(day for day in days if day not in WEEKDAYS)
    if invalid:
        raise ValueError(f"Invalid {what} number(s) {invalid}: expected 0 (Monday) to 6 (Sunday)")
    return days


class Vertical(Enum):
    ROOM_TYPE = 'room_type'
    VEHICLE = 'vehicle'
    TOUR = 'tour'


class FeeBasis(Enum):
    """
    How a fee scales with the booking

    - PER_STAY: charged once per booking (cleaning, service, security deposit)
    - PER_DAY: multiplied by the number of nights/days (vehicle insurance, driver)
    - PERCENT: percentage of the nightly subtotal (percentage service fee)
    """
    PER_STAY = 'per_stay'
    PER_DAY = 'per_day'
    PERCENT = 'percent'


class SeasonAdjustment(Enum):
    FIXED_PRICE = 'fixed_price'
    FIXED_INCREASE = 'fixed_increase'
    FIXED_DECREASE = 'fixed_decrease'
    PERCENT_INCREASE = 'percent_increase'
    PERCENT_DECREASE = 'percent_decrease'

    @property
    def is_percent(self) -> bool:
        return self in (SeasonAdjustment.PERCENT_INCREASE, SeasonAdjustment.PERCENT_DECREASE)


class DiscountKind(Enum):
    """
    - LONG_STAY, WEEKLY, MONTHLY: stay of at least `min_nights`
    - EARLY_BIRD: arrival at least `days_in_advance` days after booking
    - LAST_MINUTE: arrival at most `days_before_arrival` days after booking
    """
    LONG_STAY = 'long_stay'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'
    EARLY_BIRD = 'early_bird'
    LAST_MINUTE = 'last_minute'


class BlockReason(Enum):
    MANUAL = 'manual'
    SYNC = 'sync'
    MAINTENANCE = 'maintenance'


@dataclass(frozen=True)
class FeeRule(ValueObject):
    name: str
    basis: FeeBasis
    amount: Optional[Money] = None
    percent: Optional[Decimal] = None
    taxable: bool = True
    optional: bool = False

    def __post_init__(self):
        if self.basis is FeeBasis.PERCENT:
            if self.percent is None or self.percent < 0:
                raise ValueError(f"Percent fee {self.name!r} needs a non-negative percentage")
        elif self.amount is None:
            raise ValueError(f"Fee {self.name!r} needs a fixed amount")


@dataclass(frozen=True)
class SeasonalRate(ValueObject):
    """
    Adjustment of the base rate for the nights start_date..end_date

    Unlike Interval, end_date is inclusive: it is the last night of the season.
    `amount` is the price or the increment of the fixed adjustments, `percent`
    the rate of the percentage ones. An empty `days_of_week` means every night.
    """
    start_date: date
    end_date: date
    amount: Optional[Money] = None
    label: str = ''
    priority: int = 0
    min_nights: Optional[int] = None
    adjustment: SeasonAdjustment = SeasonAdjustment.FIXED_PRICE
    percent: Optional[Decimal] = None
    days_of_week: FrozenSet[int] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, 'days_of_week', check_weekdays(self.days_of_week, 'season weekday'))
        if self.adjustment.is_percent:
            if self.percent is None or self.percent < 0:
                raise ValueError(f"Season {self.label!r} needs a non-negative percentage")
        elif self.amount is None:
            raise ValueError(f"Season {self.label!r} needs an amount")

    def covers(self, night: date) -> bool:
        return self.start_date <= night <= self.end_date

    def applies_on(self, night: date) -> bool:
        return self.covers(night) and (not self.days_of_week or night.weekday() in self.days_of_week)

    def apply(self, base: Money) -> Money:
        """The nightly rate this season charges instead of `base`"""
        adjustment = self.adjustment
        if adjustment is SeasonAdjustment.FIXED_PRICE:
            return self.amount
        if adjustment is SeasonAdjustment.FIXED_INCREASE:
            return base + self.amount
        if adjustment is SeasonAdjustment.FIXED_DECREASE:
            return Money(max(0, base.minor - self.amount.minor), base.currency)
        if adjustment is SeasonAdjustment.PERCENT_INCREASE:
            return base + base.percent(self.percent)
        return Money(max(0, base.minor - base.percent(self.percent).minor), base.currency)


@dataclass(frozen=True)
class SpecialEvent(ValueObject):
    """Festival or holiday multiplying the base rate; end_date is inclusive"""
    name: str
    start_date: date
    end_date: date
    multiplier: Decimal
    min_nights: Optional[int] = None

    def __post_init__(self):
        if self.multiplier <= 0:
            raise ValueError(f"Event {self.name!r} needs a positive multiplier")

    def covers(self, night: date) -> bool:
        return self.start_date <= night <= self.end_date

    def apply(self, base: Money) -> Money:
        return Money(round_half_up(Decimal(base.minor) * self.multiplier), base.currency)


@dataclass(frozen=True)
class DiscountRule(ValueObject):
    """
    Percentage discount granted when its condition holds

    valid_from / valid_until (inclusive) restrict the nights it applies to.
    A rule whose threshold is unset never applies.
    """
    kind: DiscountKind
    percent: Decimal
    min_nights: Optional[int] = None
    days_in_advance: Optional[int] = None
    days_before_arrival: Optional[int] = None
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    label: str = ''

    def __post_init__(self):
        if not Decimal(0) <= self.percent <= Decimal(100):
            raise ValueError(f"Discount percentage must be between 0 and 100, got {self.percent}")

    def applies(self, night: date, nights: int, lead_days: Optional[int]) -> bool:
        """
        Does the rule discount `night` of a stay of `nights` nights booked
        `lead_days` days before arrival? Lead-time rules never apply when the
        booking date is unknown (lead_days is None).
        """
        if self.valid_from is not None and night < self.valid_from:
            return False
        if self.valid_until is not None and night > self.valid_until:
            return False

        if self.kind in (DiscountKind.LONG_STAY, DiscountKind.WEEKLY, DiscountKind.MONTHLY):
            return self.min_nights is not None and nights >= self.min_nights
        if lead_days is None:
            return False
        if self.kind is DiscountKind.EARLY_BIRD:
            return self.days_in_advance is not None and lead_days >= self.days_in_advance
        return self.days_before_arrival is not None and 0 <= lead_days <= self.days_before_arrival


@dataclass(frozen=True)
class DateOverride(ValueObject):
    """
    Owner settings for a single night, winning over every unit-level rule

    rate:            price of the night
    available_units: units offered that night, never more than the capacity
    min_nights / max_nights: stay limits for arrivals on that night
    """
    night: date
    rate: Optional[Money] = None
    available_units: Optional[int] = None
    min_nights: Optional[int] = None
    max_nights: Optional[int] = None
    note: str = ''

    def __post_init__(self):
        if self.available_units is not None and self.available_units < 0:
            raise ValueError(f"Override for {self.night} cannot offer a negative number of units")


@dataclass(frozen=True)
class BlockedPeriod(ValueObject):
    unit_id: str
    dates: Interval
    reason: BlockReason = BlockReason.MANUAL
    note: str = ''
    id: Optional[int] = None


@dataclass(frozen=True)
class BookableUnit(ValueObject):
    """
    Snapshot of a bookable unit

    Key invariants:
    - capacity is a positive integer (1 for unique assets such as a vehicle)
    - every money amount is in the unit's currency
    - weekend days are weekday numbers, Monday == 0
    """
    id: str
    name: str
    capacity: int
    base_rate: Money
    vertical: Vertical = Vertical.ROOM_TYPE
    provider_id: str = ''
    weekend_rate: Optional[Money] = None
    weekend_days: FrozenSet[int] = DEFAULT_WEEKEND_DAYS
    seasonal_rates: Tuple[SeasonalRate, ...] = ()
    special_events: Tuple[SpecialEvent, ...] = ()
    discount_rules: Tuple[DiscountRule, ...] = ()
    fees: Tuple[FeeRule, ...] = ()
    discount_percent: Optional[Decimal] = None
    promotional_label: str = ''
    tax_rate: Decimal = Decimal('0')
    min_nights: int = 1
    max_nights: Optional[int] = None
    max_guests: Optional[int] = None
    extras: Tuple[str, ...] = field(init=False, default=())

    def __post_init__(self):
        if self.capacity < 1:
            raise ValueError(f"Unit {self.id} must have a positive capacity")
        object.__setattr__(self, 'weekend_days', check_weekdays(self.weekend_days, 'weekend day'))
        currency = self.base_rate.currency
        for money in self._money_fields():
            if money.currency != currency:
                raise ValueError(
                    f"Unit {self.id} mixes currencies: {money.currency} and {currency}"
                )
        object.__setattr__(self, 'extras', tuple(fee.name for fee in self.fees if fee.optional))

    def _money_fields(self):
        if self.weekend_rate is not None:
            yield self.weekend_rate
        for season in self.seasonal_rates:
            if season.amount is not None:
                yield season.amount
        for fee in self.fees:
            if fee.amount is not None:
                yield fee.amount

    @property
    def currency(self) -> str:
        return self.base_rate.currency

    def season_for(self, night: date) -> Optional[SeasonalRate]:
        """Highest-priority season applying to the night; the earliest declared wins ties"""
        best = None
        for season in self.seasonal_rates:
            if season.applies_on(night) and (best is None or season.priority > best.priority):
                best = season
        return best

    def event_for(self, night: date) -> Optional[SpecialEvent]:
        """Event with the highest multiplier covering the night"""
        best = None
        for event in self.special_events:
            if event.covers(night) and (best is None or event.multiplier > best.multiplier):
                best = event
        return best

    def best_discount(self, night: date, nights: int, lead_days: Optional[int]) -> Optional[DiscountRule]:
        """Applicable rule with the highest percentage; the earliest declared wins ties"""
        best = None
        for rule in self.discount_rules:
            if rule.applies(night, nights, lead_days) and (best is None or rule.percent > best.percent):
                best = rule
        return best

    def capacity_on(self, override: Optional[DateOverride] = None) -> int:
        if override is not None and override.available_units is not None:
            return min(self.capacity, override.available_units)
        return self.capacity

    def minimum_stay_for(self, arrival: date, override: Optional[DateOverride] = None) -> int:
        """
        Fewest nights a stay arriving on `arrival` may last

        A per-date minimum replaces every other rule; otherwise the strictest
        of the unit, season and event minimums applies.
        """
        if override is not None and override.min_nights:
            return override.min_nights
        minimum = self.min_nights
        for season in self.seasonal_rates:
            if season.covers(arrival) and season.min_nights:
                minimum = max(minimum, season.min_nights)
        event = self.event_for(arrival)
        if event is not None and event.min_nights:
            minimum = max(minimum, event.min_nights)
        return minimum

    def maximum_stay_for(self, arrival: date, override: Optional[DateOverride] = None) -> Optional[int]:
        if override is not None and override.max_nights:
            return override.max_nights
        return self.max_nights
