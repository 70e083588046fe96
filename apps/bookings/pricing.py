"""
Pricing Calculator

Turns a unit's static price components into an itemised, deterministic
PriceBreakdown for an interval. One algorithm serves every vertical: the
fee schedule's FeeBasis decides whether a fee is charged once, per day or
as a percentage of the nightly subtotal.

The list rate of a night comes from the first of these that applies:

    1. a per-date override price
    2. a special event, multiplying the base rate
    3. a seasonal adjustment of the base rate
    4. the weekend rate
    5. the base rate

The best single discount, either the unit's promotion or a stay-length or
lead-time rule, then reduces it.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Tuple

from shared.domain.value_objects import Interval, Money, round_half_up
from shared.infrastructure.database import bounded_read

from apps.inventory.adapter import InventoryAdapter
from apps.inventory.domain.entities import BookableUnit, DateOverride, FeeBasis, FeeRule

from .domain.availability import check_stay
from .domain.exceptions import (
    CapacityExceeded,
    InvalidPricingParams,
    OccupancyExceeded,
    StayLengthViolation,
)
from .domain.pricing import FeeLine, NightLine, PriceBreakdown, QuoteParams, RateSource, TaxLine

logger = logging.getLogger(__name__)


def discounted(rate: Money, percent: Decimal | None) -> Money:
    """Rate after a percentage discount, rounded once and floored at zero"""
    if not percent:
        return rate
    reduction = round_half_up(Decimal(rate.minor) * Decimal(percent) / 100)
    return Money(max(0, rate.minor - reduction), rate.currency)


class PricingCalculator:
    def __init__(self, inventory: InventoryAdapter | None = None, timeout_ms: int | None = None):
        self.inventory = inventory or InventoryAdapter()
        self.timeout_ms = timeout_ms

    def quote(
        self,
        unit_id: str,
        dates: Interval,
        params: QuoteParams | None = None,
        *,
        today: date | None = None,
    ) -> PriceBreakdown:
        """
        Price `dates` for `unit_id`

        Non-binding: nothing is reserved and nothing is written. `today` is
        the booking date lead-time discounts are measured from; without it
        they never apply.

        Raises:
            NotFound, StoreTimeout: from the unit lookup
            CapacityExceeded: more units than the unit has
            OccupancyExceeded: more guests than the units can host
            StayLengthViolation: stay shorter or longer than allowed
            InvalidPricingParams: unknown extra
        """
        with bounded_read(self.timeout_ms):
            unit = self.inventory.get_unit(unit_id)
            overrides = self.inventory.date_overrides(unit, dates)
        breakdown = self.price(unit, dates, params or QuoteParams(), today=today, overrides=overrides)
        logger.debug("Quoted %s for %s: %s", unit_id, dates, breakdown.total)
        return breakdown

    def price(
        self,
        unit: BookableUnit,
        dates: Interval,
        params: QuoteParams,
        *,
        today: date | None = None,
        overrides: Dict[date, DateOverride] | None = None,
    ) -> PriceBreakdown:
        """Pure pricing of an already loaded unit"""
        overrides = overrides or {}
        self._check_params(unit, params)
        violation = check_stay(unit, dates, overrides)
        if violation is not None:
            raise StayLengthViolation(violation)

        lead_days = (dates.start - today).days if today is not None else None
        nights = [
            self.night_line(unit, night, params.quantity, len(dates), lead_days, overrides.get(night))
            for night in dates.nights()
        ]
        subtotal = Money.zero(unit.currency)
        for line in nights:
            subtotal = subtotal + line.amount

        fees = [
            self.fee_line(fee, subtotal, len(dates))
            for fee in self.applicable_fees(unit, params)
        ]

        tax = None
        if unit.tax_rate > 0:
            taxable_base = subtotal
            for fee in fees:
                if fee.taxable:
                    taxable_base = taxable_base + fee.amount
            tax = TaxLine(
                rate=unit.tax_rate,
                taxable_base=taxable_base,
                amount=taxable_base.percent(unit.tax_rate),
            )

        return PriceBreakdown.build(
            currency=unit.currency,
            nights=nights,
            fees=fees,
            tax=tax,
            discount_percent=unit.discount_percent or None,
            promotion=unit.promotional_label,
        )

    def nightly_rate(
        self,
        unit: BookableUnit,
        night: date,
        override: DateOverride | None = None,
    ) -> Tuple[Money, RateSource, str]:
        """List rate of one night, with the rule and label it came from"""
        if override is not None and override.rate is not None:
            return override.rate, RateSource.OVERRIDE, override.note
        event = unit.event_for(night)
        if event is not None:
            return event.apply(unit.base_rate), RateSource.EVENT, event.name
        season = unit.season_for(night)
        if season is not None:
            return season.apply(unit.base_rate), RateSource.SEASONAL, season.label
        if unit.weekend_rate is not None and night.weekday() in unit.weekend_days:
            return unit.weekend_rate, RateSource.WEEKEND, ''
        return unit.base_rate, RateSource.BASE, ''

    def night_discount(
        self,
        unit: BookableUnit,
        night: date,
        nights: int,
        lead_days: int | None,
    ) -> Tuple[Decimal | None, str]:
        """Best single discount percentage for the night, and its label"""
        percent, label = unit.discount_percent or None, unit.promotional_label
        rule = unit.best_discount(night, nights, lead_days)
        if rule is not None and (percent is None or rule.percent > percent):
            percent, label = rule.percent, rule.label or rule.kind.value
        return percent, label

    def night_line(
        self,
        unit: BookableUnit,
        night: date,
        quantity: int,
        nights: int = 1,
        lead_days: int | None = None,
        override: DateOverride | None = None,
    ) -> NightLine:
        list_rate, rule, label = self.nightly_rate(unit, night, override)
        percent, discount = self.night_discount(unit, night, nights, lead_days)
        rate = discounted(list_rate, percent)
        return NightLine(
            night=night,
            list_rate=list_rate,
            rate=rate,
            quantity=quantity,
            amount=rate * quantity,
            rule=rule,
            label=label,
            discount_percent=percent,
            discount=discount if percent else '',
        )

    def applicable_fees(self, unit: BookableUnit, params: QuoteParams) -> List[FeeRule]:
        """Mandatory fees plus the selected optional ones, in schedule order"""
        return [fee for fee in unit.fees if not fee.optional or fee.name in params.extras]

    @staticmethod
    def fee_line(fee: FeeRule, subtotal: Money, days: int) -> FeeLine:
        if fee.basis is FeeBasis.PER_STAY:
            amount = fee.amount
        elif fee.basis is FeeBasis.PER_DAY:
            amount = fee.amount * days
        else:
            amount = subtotal.percent(fee.percent)
        return FeeLine(name=fee.name, basis=fee.basis, amount=amount, taxable=fee.taxable)

    @staticmethod
    def _check_params(unit: BookableUnit, params: QuoteParams) -> None:
        if params.quantity > unit.capacity:
            raise CapacityExceeded(unit.id, params.quantity, unit.capacity)
        if unit.max_guests is not None:
            limit = unit.max_guests * params.quantity
            if params.guests > limit:
                raise OccupancyExceeded(params.guests, limit)
        unknown = [name for name in params.extras if name not in unit.extras]
        if unknown:
            raise InvalidPricingParams(
                f"Unknown extra(s) for unit {unit.id}: {', '.join(unknown)}"
            )
