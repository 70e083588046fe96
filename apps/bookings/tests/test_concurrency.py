"""Concurrent commits for the last free unit."""

from __future__ import annotations

import threading
from datetime import date, datetime, timezone
from decimal import Decimal

from django.db import connection
from django.test import TransactionTestCase

from apps.bookings.domain.exceptions import ConflictError
from apps.bookings.engine import BookingEngine
from apps.bookings.models import Booking
from apps.inventory.models import BookableUnit
from shared.domain.value_objects import Interval

TODAY = date(2024, 5, 1)
NOW = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
STAY = Interval(date(2024, 6, 1), date(2024, 6, 4))


class ConcurrentCommitTests(TransactionTestCase):
    def setUp(self) -> None:
        self.unit = BookableUnit.objects.create(
            id="car-last",
            name="Honda City",
            vertical=BookableUnit.Vertical.VEHICLE,
            capacity=1,
            currency="PKR",
            base_rate=Decimal("5000.00"),
        )
        self.engine = BookingEngine()
        self.quote = self.engine.quote(self.unit.pk, STAY)

    def _race(self, attempts: int):
        barrier = threading.Barrier(attempts)
        outcomes = []
        lock = threading.Lock()

        def attempt():
            try:
                barrier.wait(timeout=5)
                try:
                    record = self.engine.commit(self.unit.pk, STAY, 1, self.quote, today=TODAY, now=NOW)
                    outcome = record
                except ConflictError as exc:
                    outcome = exc
                with lock:
                    outcomes.append(outcome)
            finally:
                connection.close()

        threads = [threading.Thread(target=attempt) for _ in range(attempts)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        return outcomes

    def test_exactly_one_of_two_simultaneous_commits_wins(self) -> None:
        outcomes = self._race(2)

        winners = [o for o in outcomes if not isinstance(o, ConflictError)]
        conflicts = [o for o in outcomes if isinstance(o, ConflictError)]
        self.assertEqual(len(winners), 1)
        self.assertEqual(len(conflicts), 1)
        self.assertEqual(
            Booking.objects.filter(unit=self.unit, status__in=Booking.ACTIVE_STATUSES).count(), 1
        )

    def test_capacity_is_never_exceeded_under_contention(self) -> None:
        BookableUnit.objects.filter(pk=self.unit.pk).update(capacity=2)

        outcomes = self._race(4)

        winners = [o for o in outcomes if not isinstance(o, ConflictError)]
        self.assertEqual(len(outcomes), 4)
        self.assertEqual(len(winners), 2)
        self.assertEqual(Booking.objects.filter(unit=self.unit).count(), 2)
