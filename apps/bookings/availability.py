"""
Conflict Resolver

Answers whether a unit can take `requested_qty` more bookings for an
interval, combining the unit's capacity with its active bookings, its
blocked periods and the per-date overrides of its calendar. Stay-length
rules are reported with the answer but do not decide it.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List

from shared.domain.value_objects import Interval
from shared.infrastructure.database import bounded_read

from apps.inventory.adapter import InventoryAdapter
from apps.inventory.domain.entities import BookableUnit

from .domain.availability import AvailabilityResult, NightAvailability
from .domain.exceptions import PastDate
from .domain.inventory import Inventory
from .repositories import DjangoBookingRepository

logger = logging.getLogger(__name__)


class ConflictResolver:
    """
    Read side of the availability check.

    Reads go straight to the record store and are bounded by `timeout_ms`;
    nothing is cached. The commit path reuses load_inventory() while it
    holds the unit's row lock.
    """

    def __init__(
        self,
        inventory: InventoryAdapter | None = None,
        bookings: DjangoBookingRepository | None = None,
        timeout_ms: int | None = None,
    ):
        self.inventory = inventory or InventoryAdapter()
        self.bookings = bookings or DjangoBookingRepository()
        self.timeout_ms = timeout_ms

    @staticmethod
    def validate_dates(dates: Interval, today: date, allow_historical: bool = False) -> None:
        if not allow_historical and dates.start < today:
            raise PastDate(dates, today)

    def load_inventory(self, unit: BookableUnit, window: Interval) -> Inventory:
        """Active bookings, blocked periods and per-date overrides of `unit` within `window`"""
        return Inventory(
            unit=unit,
            window=window,
            bookings=self.bookings.active_overlapping(unit.id, window),
            blocks=self.inventory.blocked_periods(unit.id, window),
            overrides=self.inventory.date_overrides(unit, window),
        )

    def evaluate(self, inventory: Inventory, dates: Interval, requested_qty: int = 1) -> AvailabilityResult:
        return inventory.evaluate(dates, requested_qty)

    def check_availability(
        self,
        unit_id: str,
        dates: Interval,
        requested_qty: int = 1,
        *,
        today: date,
        allow_historical: bool = False,
    ) -> AvailabilityResult:
        """
        Can `requested_qty` units of `unit_id` be booked for `dates`?

        Raises:
            PastDate: dates start before today and history was not asked for
            NotFound: unknown or withdrawn unit
            CapacityExceeded: requested_qty is more than the unit ever has
            StoreTimeout: the store did not answer within timeout_ms
        """
        self.validate_dates(dates, today, allow_historical)
        with bounded_read(self.timeout_ms):
            unit = self.inventory.get_unit(unit_id)
            inventory = self.load_inventory(unit, dates)
        result = self.evaluate(inventory, dates, requested_qty)

        logger.debug(
            "Availability of %s for %s x%d: available=%s remaining=%d reason=%s",
            unit_id, dates, requested_qty, result.available,
            result.remaining_capacity, result.reason_code,
        )
        return result

    def availability_calendar(
        self,
        unit_id: str,
        dates: Interval,
        *,
        today: date,
        allow_historical: bool = False,
    ) -> List[NightAvailability]:
        """Free capacity of every night of `dates`"""
        self.validate_dates(dates, today, allow_historical)
        with bounded_read(self.timeout_ms):
            unit = self.inventory.get_unit(unit_id)
            inventory = self.load_inventory(unit, dates)
        return inventory.nightly_availability(dates)
