"""
Inventory Aggregate

This is the CRITICAL aggregate for preventing overbooking.
All capacity allocations MUST go through this aggregate.

An Inventory holds one unit's active bookings and blocked periods for a
window of dates, loaded while the unit's row lock is held on the commit
path. Allocation is refused whenever the new booking would push the
reserved quantity of any overlapping interval beyond the unit's capacity.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from shared.domain.base import Aggregate
from shared.domain.value_objects import Interval

from apps.inventory.domain.entities import BlockedPeriod, BookableUnit, DateOverride

from .availability import (
    AvailabilityResult,
    NightAvailability,
    StayViolation,
    UnavailableReason,
    check_stay,
)
from .entities import BookingRecord
from .exceptions import CapacityExceeded, ConflictError


@dataclass(eq=False)
class Inventory(Aggregate):
    """
    Inventory Aggregate Root

    Key invariants:
    - for every interval, the quantities of its overlapping active bookings
      never sum to more than the unit's capacity
    - a blocked period makes its nights unavailable regardless of capacity
    - a per-date override may lower the capacity of its night, never raise it
    - questions are only answered for dates inside the loaded window

    Usage:
        inventory = resolver.load_inventory(unit, dates)  # under the unit lock
        result = inventory.evaluate(dates, quantity)
        if result.available:
            inventory.allocate(record)
    """

    unit: BookableUnit
    window: Interval
    bookings: List[BookingRecord] = field(default_factory=list)
    blocks: List[BlockedPeriod] = field(default_factory=list)
    overrides: Dict[date, DateOverride] = field(default_factory=dict)

    @property
    def unit_id(self) -> str:
        return self.unit.id

    @property
    def capacity(self) -> int:
        return self.unit.capacity

    def _check_window(self, dates: Interval):
        if not self.window.covers(dates):
            raise ValueError(f"Interval {dates} is outside the loaded window {self.window}")

    def conflicts_for(self, dates: Interval) -> List[BookingRecord]:
        """Active bookings sharing at least one night with `dates`"""
        self._check_window(dates)
        return [
            booking for booking in self.bookings
            if booking.is_active and booking.dates.overlaps(dates)
        ]

    def blocks_for(self, dates: Interval) -> List[BlockedPeriod]:
        self._check_window(dates)
        return [block for block in self.blocks if block.dates.overlaps(dates)]

    def reserved_quantity(self, dates: Interval) -> int:
        """
        Sum of the quantities of every active booking overlapping `dates`

        Two bookings that overlap the interval on different nights are both
        counted, so the figure never under-states the load of any night.
        """
        return sum(booking.quantity for booking in self.conflicts_for(dates))

    def capacity_on(self, night: date) -> int:
        return self.unit.capacity_on(self.overrides.get(night))

    def offered_capacity(self, dates: Interval) -> int:
        """Smallest capacity offered on any night of `dates`"""
        return min(self.capacity_on(night) for night in dates.nights())

    def remaining_capacity(self, dates: Interval) -> int:
        if self.blocks_for(dates):
            return 0
        return max(0, self.offered_capacity(dates) - self.reserved_quantity(dates))

    def stay_violation(self, dates: Interval) -> Optional[StayViolation]:
        return check_stay(self.unit, dates, self.overrides)

    def evaluate(self, dates: Interval, requested_qty: int = 1) -> AvailabilityResult:
        """
        Decide whether `requested_qty` units can be booked for `dates`

        Raises CapacityExceeded when the request can never fit, even on an
        empty calendar.
        """
        if requested_qty < 1:
            raise ValueError("Requested quantity must be at least 1")
        if requested_qty > self.capacity:
            raise CapacityExceeded(self.unit_id, requested_qty, self.capacity)

        conflicts = self.conflicts_for(dates)
        blocks = self.blocks_for(dates)
        if blocks:
            remaining = 0
        else:
            remaining = max(0, self.offered_capacity(dates) - sum(b.quantity for b in conflicts))

        reason = None
        if blocks:
            reason = UnavailableReason.BLOCKED
        elif remaining < requested_qty:
            reason = UnavailableReason.INSUFFICIENT_CAPACITY

        return AvailabilityResult(
            unit_id=self.unit_id,
            dates=dates,
            available=remaining >= requested_qty,
            remaining_capacity=remaining,
            capacity=self.capacity,
            requested_quantity=requested_qty,
            conflicts=tuple(conflicts),
            blocks=tuple(blocks),
            reason=reason,
            stay_violation=self.stay_violation(dates),
        )

    def can_allocate(self, dates: Interval, quantity: int = 1) -> bool:
        return self.evaluate(dates, quantity).available

    def allocate(self, record: BookingRecord) -> BookingRecord:
        """
        Allocate capacity to a new booking

        Raises:
            ConflictError: the booking no longer fits, carrying the fresh result
        """
        if record.unit_id != self.unit_id:
            raise ValueError(f"Booking {record.reference} is not for unit {self.unit_id}")

        result = self.evaluate(record.dates, record.quantity)
        if not result.available:
            raise ConflictError(result)

        self.bookings.append(record)

        from apps.bookings.domain.events import BookingCommitted

        self.add_event(BookingCommitted(
            aggregate_id=record.id,
            occurred_at=record.created_at,
            booking_id=record.id,
            reference=record.reference,
            unit_id=self.unit_id,
            dates=record.dates,
            quantity=record.quantity,
            total=record.total,
        ))
        return record

    def nightly_availability(self, dates: Interval) -> List[NightAvailability]:
        """Per-night reserved and free capacity, for availability calendars"""
        self._check_window(dates)
        active = [booking for booking in self.bookings if booking.is_active]
        calendar = []
        for night in dates.nights():
            blocked = any(block.dates.contains(night) for block in self.blocks)
            reserved = sum(b.quantity for b in active if b.dates.contains(night))
            capacity = self.capacity_on(night)
            remaining = 0 if blocked else max(0, capacity - reserved)
            calendar.append(NightAvailability(
                night=night,
                capacity=capacity,
                reserved=reserved,
                remaining=remaining,
                blocked=blocked,
            ))
        return calendar

    def __str__(self):
        return f"Inventory(unit={self.unit_id}, bookings={len(self.bookings)}, window={self.window})"

    def __repr__(self):
        return (
            f"Inventory(id={self.id}, unit_id={self.unit_id}, "
            f"bookings_count={len(self.bookings)}, blocks_count={len(self.blocks)})"
        )
