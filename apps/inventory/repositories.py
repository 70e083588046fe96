"""Django ORM access to bookable units and their calendars."""

from __future__ import annotations

import logging
from decimal import Decimal
from datetime import date
from typing import Dict, List

from django.db.models import Prefetch  # type: ignore

from shared.domain.value_objects import Interval, Money

from .domain.entities import (
    DEFAULT_WEEKEND_DAYS,
    BlockedPeriod,
    BlockReason,
    BookableUnit,
    DateOverride,
    DiscountKind,
    DiscountRule,
    FeeBasis,
    FeeRule,
    SeasonAdjustment,
    SeasonalRate,
    SpecialEvent,
    Vertical,
)
from .models import BlockedPeriod as BlockedPeriodModel
from .models import BookableUnit as BookableUnitModel
from .models import UnitDateOverride, UnitDiscountRule, UnitFee, UnitSeasonalRate, UnitSpecialEvent

logger = logging.getLogger(__name__)


class DjangoInventoryRepository:
    """
    Reads units and their calendars from the relational store

    Returns domain snapshots, never model instances, so nothing downstream
    can lazily hit the database again outside the caller's transaction.
    """

    def _queryset(self):
        return BookableUnitModel.objects.filter(is_available=True).prefetch_related(
            Prefetch("fees", queryset=UnitFee.objects.order_by("position", "id")),
            Prefetch("seasonal_rates", queryset=UnitSeasonalRate.objects.order_by("start_date", "id")),
            Prefetch(
                "special_events",
                queryset=UnitSpecialEvent.objects.filter(is_active=True).order_by("start_date", "id"),
            ),
            Prefetch(
                "discount_rules",
                queryset=UnitDiscountRule.objects.filter(is_active=True).order_by("id"),
            ),
        )

    def get(self, unit_id: str) -> BookableUnit | None:
        model = self._queryset().filter(pk=unit_id).first()
        return to_domain(model) if model is not None else None

    def lock(self, unit_id: str) -> BookableUnit | None:
        """
        Load a unit holding its row lock until the surrounding transaction ends

        Must be called inside transaction.atomic(). On SQLite, where
        select_for_update() is ignored, the IMMEDIATE transaction mode already
        serialises writers.
        """

        locked = (
            BookableUnitModel.objects.select_for_update()
            .filter(pk=unit_id, is_available=True)
            .values_list("pk", flat=True)
            .first()
        )
        if locked is None:
            return None
        return self.get(unit_id)

    def blocked_periods(self, unit_id: str, dates: Interval) -> List[BlockedPeriod]:
        """Blocked periods sharing at least one night with `dates`"""

        rows = BlockedPeriodModel.objects.filter(
            unit_id=unit_id,
            start_date__lt=dates.end,
            end_date__gt=dates.start,
        ).order_by("start_date", "id")
        return [
            BlockedPeriod(
                id=row.pk,
                unit_id=row.unit_id,
                dates=Interval(row.start_date, row.end_date),
                reason=BlockReason(row.reason),
                note=row.note,
            )
            for row in rows
        ]

    def date_overrides(self, unit_id: str, dates: Interval, currency: str) -> Dict[date, DateOverride]:
        """Per-night overrides of the nights of `dates`, keyed by date"""

        rows = UnitDateOverride.objects.filter(
            unit_id=unit_id,
            date__gte=dates.start,
            date__lt=dates.end,
        ).order_by("date")
        return {
            row.date: DateOverride(
                night=row.date,
                rate=Money.from_major(row.nightly_rate, currency) if row.nightly_rate is not None else None,
                available_units=row.available_units,
                min_nights=row.min_nights,
                max_nights=row.max_nights,
                note=row.note,
            )
            for row in rows
        }


def _money(amount, currency: str):
    return Money.from_major(amount, currency) if amount is not None else None


def _decimal(value):
    return Decimal(value) if value is not None else None


def to_domain(model: BookableUnitModel) -> BookableUnit:
    """
    Map a unit row and its prefetched schedules to a domain snapshot.

    Raises ValueError for rows that break the domain invariants, e.g.
    weekday numbers outside 0-6.
    """

    currency = model.currency
    fees = tuple(
        FeeRule(
            name=fee.name,
            basis=FeeBasis(fee.basis),
            amount=_money(fee.amount, currency),
            percent=_decimal(fee.percent),
            taxable=fee.taxable,
            optional=fee.optional,
        )
        for fee in model.fees.all()
    )
    seasons = tuple(
        SeasonalRate(
            start_date=season.start_date,
            end_date=season.end_date,
            amount=_money(season.amount, currency),
            label=season.label,
            priority=season.priority,
            min_nights=season.min_nights,
            adjustment=SeasonAdjustment(season.adjustment),
            percent=_decimal(season.percent),
            days_of_week=frozenset(int(day) for day in season.days_of_week or ()),
        )
        for season in model.seasonal_rates.all()
    )
    events = tuple(
        SpecialEvent(
            name=event.name,
            start_date=event.start_date,
            end_date=event.end_date,
            multiplier=Decimal(event.multiplier),
            min_nights=event.min_nights,
        )
        for event in model.special_events.all()
    )
    discounts = tuple(
        DiscountRule(
            kind=DiscountKind(rule.kind),
            percent=Decimal(rule.percent),
            min_nights=rule.min_nights,
            days_in_advance=rule.days_in_advance,
            days_before_arrival=rule.days_before_arrival,
            valid_from=rule.valid_from,
            valid_until=rule.valid_until,
            label=rule.label,
        )
        for rule in model.discount_rules.all()
    )
    if model.weekend_days is None:
        weekend_days = DEFAULT_WEEKEND_DAYS
    else:
        weekend_days = frozenset(int(day) for day in model.weekend_days)
    return BookableUnit(
        id=model.pk,
        name=model.name,
        capacity=model.capacity,
        vertical=Vertical(model.vertical),
        provider_id=model.provider_id,
        base_rate=Money.from_major(model.base_rate, currency),
        weekend_rate=_money(model.weekend_rate, currency),
        weekend_days=weekend_days,
        seasonal_rates=seasons,
        special_events=events,
        discount_rules=discounts,
        fees=fees,
        discount_percent=_decimal(model.discount_percent),
        promotional_label=model.promotional_label,
        tax_rate=Decimal(model.tax_rate),
        min_nights=model.min_nights,
        max_nights=model.max_nights,
        max_guests=model.max_guests,
    )
