"""Tests for the request and response serializers."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from apps.bookings.domain.exceptions import ConflictError
from apps.bookings.domain.pricing import QuoteParams
from apps.bookings.serializers import (
    AvailabilityResultSerializer,
    BookingRecordSerializer,
    CommitRequestSerializer,
    ConflictSerializer,
    IntervalSerializer,
    NightAvailabilitySerializer,
    PriceBreakdownSerializer,
    QuoteRequestSerializer,
)
from shared.domain.value_objects import Interval

STAY = Interval(date(2024, 6, 1), date(2024, 6, 4))


def test_quote_request_builds_interval_and_params():
    serializer = QuoteRequestSerializer(data={
        "unit_id": "car-7",
        "start": "2024-06-03",
        "end": "2024-06-06",
        "guests": 2,
        "extras": ["Insurance"],
    })

    assert serializer.is_valid(), serializer.errors
    assert serializer.validated_data["interval"] == Interval(date(2024, 6, 3), date(2024, 6, 6))
    assert serializer.validated_data["params"] == QuoteParams(guests=2, quantity=1, extras=("Insurance",))


def test_request_with_end_before_start_is_invalid():
    serializer = QuoteRequestSerializer(data={"unit_id": "x", "start": "2024-06-03", "end": "2024-06-03"})

    assert not serializer.is_valid()
    assert "end" in serializer.errors


def test_quantity_must_be_positive():
    serializer = QuoteRequestSerializer(data={
        "unit_id": "x", "start": "2024-06-03", "end": "2024-06-04", "quantity": 0,
    })

    assert not serializer.is_valid()
    assert "quantity" in serializer.errors


@pytest.mark.django_db
def test_breakdown_is_rendered_in_major_units(engine, make_unit):
    unit = make_unit(
        weekend_rate=Decimal("150.00"),
        tax_rate=Decimal("10.00"),
        fees=[{"name": "Cleaning", "basis": "per_stay", "amount": Decimal("50.00")}],
    )

    data = PriceBreakdownSerializer(engine.quote(unit.pk, STAY)).data

    assert data["currency"] == "PKR"
    assert data["start"] == "2024-06-01"
    assert [line["rate"] for line in data["nights"]] == ["150.00", "100.00", "100.00"]
    assert data["nights"][0]["rule"] == "weekend"
    assert data["fees"] == [{"name": "Cleaning", "basis": "per_stay", "amount": "50.00", "taxable": True}]
    assert data["tax"]["amount"] == "40.00"
    assert data["tax"]["rate"] == "10.00"
    assert data["subtotal"] == "350.00"
    assert data["total"] == "440.00"
    assert data["discount_percent"] is None


@pytest.mark.django_db
def test_commit_request_round_trips_the_accepted_quote(engine, make_unit, today, now):
    unit = make_unit()
    quote = engine.quote(unit.pk, STAY)

    serializer = CommitRequestSerializer(data={
        "unit_id": unit.pk,
        "start": "2024-06-01",
        "end": "2024-06-04",
        "price_snapshot": quote.to_snapshot(),
        "metadata": {"channel": "mobile"},
    })
    assert serializer.is_valid(), serializer.errors
    attrs = serializer.validated_data

    record = engine.commit(
        attrs["unit_id"], attrs["interval"], attrs["quantity"], attrs["price_snapshot"],
        attrs["metadata"], today=today, now=now,
    )
    data = BookingRecordSerializer(record).data

    assert data["status"] == "pending"
    assert data["total"] == "300.00"
    assert data["metadata"] == {"channel": "mobile"}
    assert data["breakdown"]["total"] == "300.00"


def test_malformed_snapshot_is_a_validation_error():
    serializer = CommitRequestSerializer(data={
        "unit_id": "x",
        "start": "2024-06-01",
        "end": "2024-06-04",
        "price_snapshot": {"currency": "PKR", "nights": []},
    })

    assert not serializer.is_valid()
    assert "price_snapshot" in serializer.errors


@pytest.mark.django_db
def test_availability_and_conflict_payloads(engine, make_unit, block, today, now):
    unit = make_unit()
    quote = engine.quote(unit.pk, STAY)
    engine.commit(unit.pk, STAY, 1, quote, today=today, now=now)
    block(unit, date(2024, 6, 10), date(2024, 6, 12), note="Repainting")

    result = engine.check_availability(unit.pk, STAY, today=today)
    data = AvailabilityResultSerializer(result).data

    assert data["available"] is False
    assert data["reason"] == "insufficient_capacity"
    assert data["conflicts"][0]["quantity"] == 1
    assert set(data["conflicts"][0]) == {"reference", "start", "end", "quantity", "status"}

    alternatives = engine.suggest_alternatives(unit.pk, STAY, 10, 2, today=today)
    conflict = ConflictError(result)
    body = ConflictSerializer({
        "detail": str(conflict),
        "lock_timeout": conflict.lock_timeout,
        "availability": conflict.availability,
        "alternatives": alternatives,
    }).data

    assert body["alternatives"] == [
        {"start": "2024-06-04", "end": "2024-06-07", "nights": 3},
        {"start": "2024-06-05", "end": "2024-06-08", "nights": 3},
    ]
    assert body["availability"]["remaining_capacity"] == 0

    calendar = NightAvailabilitySerializer(
        engine.availability_calendar(unit.pk, Interval(date(2024, 6, 10), date(2024, 6, 11)), today=today),
        many=True,
    ).data
    assert calendar[0]["blocked"] is True
    assert calendar[0]["available"] is False


def test_interval_serializer():
    assert IntervalSerializer(STAY).data == {"start": "2024-06-01", "end": "2024-06-04", "nights": 3}


def test_lock_timeout_conflict_has_no_availability():
    conflict = ConflictError(lock_timeout=True)

    body = ConflictSerializer({
        "detail": str(conflict),
        "lock_timeout": True,
        "availability": None,
        "alternatives": [],
    }).data

    assert body["availability"] is None
    assert body["lock_timeout"] is True


@pytest.mark.django_db
def test_stay_violation_and_night_discount_are_rendered(engine, make_unit, today):
    unit = make_unit(
        min_nights=5,
        discounts=[{"kind": "long_stay", "percent": Decimal("12.50"), "min_nights": 5, "label": "Five nights"}],
    )

    short = AvailabilityResultSerializer(engine.check_availability(unit.pk, STAY, today=today)).data
    week = Interval(date(2024, 6, 3), date(2024, 6, 10))
    long = AvailabilityResultSerializer(engine.check_availability(unit.pk, week, today=today)).data
    quote = PriceBreakdownSerializer(engine.quote(unit.pk, week, today=today)).data

    assert short["available"] is True
    assert short["stay_violation"] == {"rule": "below_min_stay", "nights": 3, "limit": 5}
    assert long["stay_violation"] is None
    assert quote["nights"][0]["discount"] == "Five nights"
    assert quote["nights"][0]["discount_percent"] == "12.50"
    assert quote["nights"][0]["list_rate"] == "100.00"
    assert quote["nights"][0]["rate"] == "87.50"
