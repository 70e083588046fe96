"""Tests for the inventory adapter and its ORM repository."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.db import transaction

from apps.inventory.adapter import InventoryAdapter
from apps.inventory.domain.entities import (
    BlockReason,
    BookableUnit,
    DiscountKind,
    FeeBasis,
    SeasonAdjustment,
    SeasonalRate,
    Vertical,
)
from apps.inventory.domain.exceptions import NotFound
from apps.inventory.models import BookableUnit as BookableUnitModel
from apps.inventory.models import UnitSeasonalRate
from shared.domain.value_objects import Interval, Money


@pytest.mark.django_db
def test_get_unit_maps_rates_fees_and_seasons(make_unit):
    unit = make_unit(
        vertical="vehicle",
        provider_id="prov-9",
        base_rate=Decimal("4500.00"),
        weekend_rate=Decimal("5200.50"),
        weekend_days=[5, 6],
        tax_rate=Decimal("10.00"),
        discount_percent=Decimal("15.00"),
        promotional_label="Summer deal",
        max_nights=30,
        fees=[
            {"name": "Service fee", "basis": "percent", "percent": Decimal("5.00")},
            {"name": "Insurance", "basis": "per_day", "amount": Decimal("500.00"), "optional": True},
            {"name": "Security deposit", "basis": "per_stay", "amount": Decimal("10000.00"), "taxable": False},
        ],
        seasons=[
            {
                "start_date": date(2024, 12, 20),
                "end_date": date(2025, 1, 5),
                "amount": Decimal("6000.00"),
                "label": "Holidays",
                "min_nights": 3,
            },
        ],
    )

    snapshot = InventoryAdapter().get_unit(unit.pk)

    assert snapshot.id == unit.pk
    assert snapshot.vertical is Vertical.VEHICLE
    assert snapshot.currency == "PKR"
    assert snapshot.base_rate == Money(450000, "PKR")
    assert snapshot.weekend_rate == Money(520050, "PKR")
    assert snapshot.weekend_days == frozenset({5, 6})
    assert snapshot.tax_rate == Decimal("10.00")
    assert snapshot.discount_percent == Decimal("15.00")
    assert [fee.basis for fee in snapshot.fees] == [FeeBasis.PERCENT, FeeBasis.PER_DAY, FeeBasis.PER_STAY]
    assert snapshot.extras == ("Insurance",)
    assert snapshot.fees[2].taxable is False
    assert snapshot.season_for(date(2024, 12, 31)).label == "Holidays"
    assert snapshot.minimum_stay_for(date(2024, 12, 24)) == 3
    assert snapshot.minimum_stay_for(date(2024, 11, 24)) == 1


@pytest.mark.django_db
def test_unknown_unit_is_not_found():
    with pytest.raises(NotFound) as excinfo:
        InventoryAdapter().get_unit("missing")

    assert excinfo.value.unit_id == "missing"


@pytest.mark.django_db
def test_unit_taken_off_the_market_is_not_found(make_unit):
    unit = make_unit(is_available=False)

    with pytest.raises(NotFound):
        InventoryAdapter().get_unit(unit.pk)


@pytest.mark.django_db
def test_blocked_periods_only_returns_overlapping_blocks(make_unit, block):
    unit = make_unit()
    block(unit, date(2024, 6, 1), date(2024, 6, 5), reason="maintenance")
    block(unit, date(2024, 6, 10), date(2024, 6, 12), reason="sync")
    block(unit, date(2024, 5, 20), date(2024, 5, 28))

    found = InventoryAdapter().blocked_periods(unit.pk, Interval(date(2024, 6, 4), date(2024, 6, 10)))

    assert [period.dates for period in found] == [Interval(date(2024, 6, 1), date(2024, 6, 5))]
    assert found[0].reason is BlockReason.MAINTENANCE


@pytest.mark.django_db
def test_seasons_with_higher_priority_win(make_unit):
    unit = make_unit(
        seasons=[
            {"start_date": date(2024, 7, 1), "end_date": date(2024, 8, 31), "amount": Decimal("150"), "label": "Summer"},
            {"start_date": date(2024, 8, 10), "end_date": date(2024, 8, 15), "amount": Decimal("300"), "label": "Festival", "priority": 5},
        ],
    )

    snapshot = InventoryAdapter().get_unit(unit.pk)

    assert snapshot.season_for(date(2024, 8, 12)).label == "Festival"
    assert snapshot.season_for(date(2024, 8, 20)).label == "Summer"
    assert snapshot.season_for(date(2024, 9, 1)) is None


@pytest.mark.django_db
def test_lock_unit_returns_the_snapshot_inside_a_transaction(make_unit):
    unit = make_unit(capacity=4)

    with transaction.atomic():
        snapshot = InventoryAdapter().lock_unit(unit.pk)

    assert snapshot.capacity == 4

    with transaction.atomic(), pytest.raises(NotFound):
        InventoryAdapter().lock_unit("missing")


@pytest.mark.django_db
def test_get_unit_maps_adjustments_events_and_discounts(make_unit):
    unit = make_unit(
        seasons=[
            {
                "start_date": date(2024, 7, 1),
                "end_date": date(2024, 8, 31),
                "adjustment": "percent_increase",
                "percent": Decimal("20.00"),
                "days_of_week": [4, 5],
                "label": "Summer weekends",
            },
        ],
        events=[
            {"name": "Eid", "start_date": date(2024, 6, 16), "end_date": date(2024, 6, 18), "multiplier": Decimal("1.50"), "min_nights": 2},
            {"name": "Old fair", "start_date": date(2024, 6, 16), "end_date": date(2024, 6, 18), "multiplier": Decimal("3.00"), "is_active": False},
        ],
        discounts=[
            {"kind": "weekly", "percent": Decimal("10.00"), "min_nights": 7},
            {"kind": "early_bird", "percent": Decimal("5.00"), "days_in_advance": 60, "label": "Plan ahead"},
            {"kind": "last_minute", "percent": Decimal("50.00"), "days_before_arrival": 2, "is_active": False},
        ],
    )

    snapshot = InventoryAdapter().get_unit(unit.pk)

    (season,) = snapshot.seasonal_rates
    assert season.adjustment is SeasonAdjustment.PERCENT_INCREASE
    assert season.percent == Decimal("20.00")
    assert season.amount is None
    assert season.days_of_week == frozenset({4, 5})
    assert snapshot.season_for(date(2024, 7, 5)) == season  # Friday
    assert snapshot.season_for(date(2024, 7, 8)) is None  # Monday

    assert [event.name for event in snapshot.special_events] == ["Eid"]
    assert snapshot.event_for(date(2024, 6, 17)).multiplier == Decimal("1.50")
    assert snapshot.minimum_stay_for(date(2024, 6, 16)) == 2

    assert [rule.kind for rule in snapshot.discount_rules] == [DiscountKind.WEEKLY, DiscountKind.EARLY_BIRD]
    assert snapshot.discount_rules[1].label == "Plan ahead"


@pytest.mark.django_db
def test_date_overrides_are_keyed_by_night(make_unit, override):
    unit = make_unit(capacity=5, base_rate=Decimal("100.00"))
    override(unit, date(2024, 6, 2), nightly_rate=Decimal("80.50"), note="Owner special")
    override(unit, date(2024, 6, 3), available_units=2, min_nights=3)
    override(unit, date(2024, 6, 9), nightly_rate=Decimal("10.00"))

    adapter = InventoryAdapter()
    snapshot = adapter.get_unit(unit.pk)
    found = adapter.date_overrides(snapshot, Interval(date(2024, 6, 1), date(2024, 6, 9)))

    assert sorted(found) == [date(2024, 6, 2), date(2024, 6, 3)]
    assert found[date(2024, 6, 2)].rate == Money(8050, "PKR")
    assert found[date(2024, 6, 2)].note == "Owner special"
    assert found[date(2024, 6, 3)].rate is None
    assert snapshot.capacity_on(found[date(2024, 6, 3)]) == 2
    assert snapshot.minimum_stay_for(date(2024, 6, 3), found[date(2024, 6, 3)]) == 3


@pytest.mark.django_db
def test_override_cannot_raise_capacity(make_unit, override):
    unit = make_unit(capacity=2)
    override(unit, date(2024, 6, 2), available_units=10)

    adapter = InventoryAdapter()
    snapshot = adapter.get_unit(unit.pk)
    found = adapter.date_overrides(snapshot, Interval(date(2024, 6, 1), date(2024, 6, 3)))

    assert snapshot.capacity_on(found[date(2024, 6, 2)]) == 2


@pytest.mark.django_db
def test_weekday_numbers_are_validated_by_the_model(make_unit):
    unit = make_unit()
    unit.weekend_days = [5, 7]

    with pytest.raises(ValidationError) as excinfo:
        unit.full_clean()

    assert "weekend_days" in excinfo.value.message_dict

    season = UnitSeasonalRate(
        unit=unit, start_date=date(2024, 7, 1), end_date=date(2024, 7, 31),
        amount=Decimal("120"), days_of_week=["fri"],
    )
    with pytest.raises(ValidationError) as excinfo:
        season.full_clean()

    assert "days_of_week" in excinfo.value.message_dict


@pytest.mark.django_db
def test_invalid_weekday_rows_fail_the_mapping(make_unit):
    unit = make_unit()
    BookableUnitModel.objects.filter(pk=unit.pk).update(weekend_days=[7])

    with pytest.raises(ValueError, match="weekend day"):
        InventoryAdapter().get_unit(unit.pk)


def test_domain_unit_rejects_invalid_weekdays():
    with pytest.raises(ValueError):
        BookableUnit(id="u", name="Room", capacity=1, base_rate=Money(100, "PKR"), weekend_days=frozenset({9}))

    with pytest.raises(ValueError):
        SeasonalRate(date(2024, 7, 1), date(2024, 7, 2), Money(100, "PKR"), days_of_week=frozenset({-1}))
