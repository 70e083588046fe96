from datetime import date
from unittest import mock

import pytest
from django.db.utils import OperationalError

from shared.domain.exceptions import StoreTimeout
from shared.domain.value_objects import Interval
from shared.infrastructure.database import bounded_read, is_timeout_error, set_local_timeouts


class DriverError(Exception):
    """Stands in for the psycopg exception Django wraps in OperationalError."""


def wrapped(message, **attrs):
    driver = DriverError(message)
    for name, value in attrs.items():
        setattr(driver, name, value)
    exc = OperationalError(message)
    exc.__cause__ = driver
    return exc


@pytest.mark.parametrize(
    "exc",
    [
        wrapped("canceling statement due to statement timeout", sqlstate="57014"),
        wrapped("canceling statement due to lock timeout", sqlstate="55P03"),
        wrapped("could not obtain lock on row", pgcode="55P03"),
        OperationalError("database is locked"),
        OperationalError("database table is locked: inventory_bookableunit"),
    ],
)
def test_timeouts_are_recognised(exc):
    assert is_timeout_error(exc)


@pytest.mark.parametrize(
    "exc",
    [
        OperationalError("disk I/O error"),
        wrapped("server closed the connection unexpectedly", sqlstate="08006"),
        wrapped("no sqlstate at all"),
    ],
)
def test_other_operational_errors_are_not_timeouts(exc):
    assert not is_timeout_error(exc)


@pytest.mark.django_db
def test_bounded_read_turns_timeouts_into_store_timeout():
    exc = wrapped("canceling statement due to statement timeout", sqlstate="57014")

    with pytest.raises(StoreTimeout) as excinfo:
        with bounded_read(250):
            raise exc

    assert excinfo.value.__cause__ is exc
    assert "250ms" in str(excinfo.value)


@pytest.mark.django_db
def test_bounded_read_lets_other_errors_propagate():
    exc = OperationalError("disk I/O error")

    with pytest.raises(OperationalError) as excinfo:
        with bounded_read(250):
            raise exc

    assert excinfo.value is exc
    assert not isinstance(excinfo.value, StoreTimeout)


@pytest.mark.django_db
def test_bounded_read_passes_results_through(make_unit):
    unit = make_unit()

    with bounded_read(250):
        found = type(unit).objects.filter(pk=unit.pk).exists()

    assert found


@pytest.mark.django_db
def test_set_local_timeouts_is_a_no_op_outside_postgresql():
    assert set_local_timeouts(statement_timeout_ms=100, lock_timeout_ms=100) is None


@pytest.mark.django_db
def test_availability_check_reports_store_timeout(engine, make_unit):
    unit = make_unit()
    locked = wrapped("canceling statement due to lock timeout", sqlstate="55P03")

    with mock.patch.object(engine.inventory, "get_unit", side_effect=locked):
        with pytest.raises(StoreTimeout):
            engine.check_availability(unit.pk, Interval(date(2024, 6, 1), date(2024, 6, 4)), today=date(2024, 5, 1))


@pytest.mark.django_db
def test_availability_check_propagates_other_store_errors(engine, make_unit):
    unit = make_unit()

    with mock.patch.object(engine.inventory, "get_unit", side_effect=OperationalError("disk I/O error")):
        with pytest.raises(OperationalError):
            engine.check_availability(unit.pk, Interval(date(2024, 6, 1), date(2024, 6, 4)), today=date(2024, 5, 1))
