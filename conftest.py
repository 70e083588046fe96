"""Shared fixtures: units, blocked periods and a ready engine."""

from __future__ import annotations

import itertools
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from apps.inventory.models import (
    BlockedPeriod,
    BookableUnit,
    UnitDateOverride,
    UnitDiscountRule,
    UnitFee,
    UnitSeasonalRate,
    UnitSpecialEvent,
)

# 2024-05-01 is a Wednesday
TODAY = date(2024, 5, 1)
NOW = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

_unit_ids = itertools.count(1)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_unit(db):
    """Create a BookableUnit row; its schedules are given as lists of dicts."""

    def factory(*, fees=(), seasons=(), events=(), discounts=(), **overrides) -> BookableUnit:
        fields = {
            "id": f"unit-{next(_unit_ids)}",
            "name": "Deluxe double",
            "capacity": 1,
            "currency": "PKR",
            "base_rate": Decimal("100.00"),
        }
        fields.update(overrides)
        unit = BookableUnit.objects.create(**fields)
        for position, fee in enumerate(fees):
            UnitFee.objects.create(unit=unit, position=position, **fee)
        for season in seasons:
            UnitSeasonalRate.objects.create(unit=unit, **season)
        for event in events:
            UnitSpecialEvent.objects.create(unit=unit, **event)
        for discount in discounts:
            UnitDiscountRule.objects.create(unit=unit, **discount)
        return unit

    return factory


@pytest.fixture
def block(db):
    def factory(unit: BookableUnit, start: date, end: date, **extra) -> BlockedPeriod:
        return BlockedPeriod.objects.create(unit=unit, start_date=start, end_date=end, **extra)

    return factory


@pytest.fixture
def override(db):
    def factory(unit: BookableUnit, night: date, **fields) -> UnitDateOverride:
        return UnitDateOverride.objects.create(unit=unit, date=night, **fields)

    return factory


@pytest.fixture
def engine(db):
    from apps.bookings.engine import BookingEngine

    return BookingEngine()
