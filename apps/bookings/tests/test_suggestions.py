"""Tests for alternative-date suggestions."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from apps.bookings.suggestions import AlternativeDateSuggester
from shared.domain.value_objects import Interval

DAY_0 = date(2024, 6, 1)


def day(offset: int) -> date:
    return DAY_0 + timedelta(days=offset)


@pytest.mark.django_db
def test_first_suggestion_starts_when_the_calendar_opens(engine, make_unit, block, today):
    unit = make_unit()
    block(unit, day(0), day(31))
    original = Interval(day(0), day(3))

    suggestions = engine.suggest_alternatives(unit.pk, original, 30, today=today)

    assert suggestions[0] == Interval(day(31), day(34))
    assert suggestions == [Interval(day(31), day(34)), Interval(day(32), day(35)), Interval(day(33), day(36))]


@pytest.mark.django_db
def test_nothing_inside_the_window_is_a_normal_outcome(engine, make_unit, block, today):
    unit = make_unit()
    block(unit, day(0), day(60))

    assert engine.suggest_alternatives(unit.pk, Interval(day(0), day(3)), 30, today=today) == []


@pytest.mark.django_db
def test_suggestions_are_ordered_by_proximity(engine, make_unit, block, today):
    unit = make_unit()
    block(unit, day(10), day(12))
    original = Interval(day(10), day(12))

    suggestions = engine.suggest_alternatives(
        unit.pk, original, 30, 4, include_earlier=True, today=today,
    )

    assert suggestions == [
        Interval(day(12), day(14)),
        Interval(day(8), day(10)),
        Interval(day(13), day(15)),
        Interval(day(7), day(9)),
    ]


@pytest.mark.django_db
def test_earlier_suggestions_never_start_in_the_past(engine, make_unit, block):
    unit = make_unit()
    block(unit, day(2), day(4))

    suggestions = engine.suggest_alternatives(
        unit.pk, Interval(day(2), day(4)), 30, 5, include_earlier=True, today=day(1),
    )

    assert all(candidate.start >= day(1) for candidate in suggestions)
    assert Interval(day(0), day(2)) not in suggestions


@pytest.mark.django_db
def test_suggestions_respect_requested_quantity(engine, make_unit, block, today, now):
    unit = make_unit(capacity=2)
    busy = Interval(day(0), day(5))
    quote = engine.quote(unit.pk, busy)
    engine.commit(unit.pk, busy, 1, quote, today=today, now=now)

    one_unit = engine.suggest_alternatives(unit.pk, Interval(day(0), day(2)), 10, 1, today=today)
    two_units = engine.suggest_alternatives(
        unit.pk, Interval(day(0), day(2)), 10, 1, requested_qty=2, today=today,
    )

    assert one_unit == [Interval(day(1), day(3))]
    assert two_units == [Interval(day(5), day(7))]


def test_candidates_cover_the_window_after_the_original_end():
    suggester = AlternativeDateSuggester(resolver=object())
    original = Interval(day(0), day(3))

    candidates = suggester.candidates(original, today=day(0), search_window_days=30)

    assert candidates[0] == Interval(day(1), day(4))
    assert candidates[-1] == Interval(day(33), day(36))
    assert len(candidates) == 33


@pytest.mark.django_db
def test_zero_suggestions_requested(engine, make_unit, today):
    unit = make_unit()

    assert engine.suggest_alternatives(unit.pk, Interval(day(0), day(3)), 30, 0, today=today) == []


@pytest.mark.django_db
def test_candidates_breaking_a_stay_rule_are_skipped(engine, make_unit, block, override, today):
    unit = make_unit()
    block(unit, day(0), day(2))
    override(unit, day(2), min_nights=5)
    override(unit, day(3), max_nights=1)

    suggestions = engine.suggest_alternatives(unit.pk, Interval(day(0), day(2)), 30, 2, today=today)

    assert suggestions == [Interval(day(4), day(6)), Interval(day(5), day(7))]
