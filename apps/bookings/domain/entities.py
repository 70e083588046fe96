"""
Booking Domain Entities

Core business entities for the booking domain:
- BookingRecord: Aggregate representing one committed booking
- BookingStatus: FSM states for the booking lifecycle
- generate_reference: Human-readable booking references
"""

import secrets
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from shared.domain.base import Aggregate
from shared.domain.value_objects import Interval

from apps.inventory.domain.entities import Vertical

from .exceptions import InvalidStatusTransition
from .pricing import PriceBreakdown

REFERENCE_PREFIXES = {
    Vertical.ROOM_TYPE: 'PB',
    Vertical.VEHICLE: 'VB',
    Vertical.TOUR: 'TB',
}
# Crockford-style alphabet: no 0/O or 1/I/L look-alikes
REFERENCE_ALPHABET = '23456789ABCDEFGHJKMNPQRSTUVWXYZ'
REFERENCE_LENGTH = 8


def generate_reference(vertical: Vertical = Vertical.ROOM_TYPE) -> str:
    """
    Random booking reference such as PB-7KQ2M9XD

    The prefix tells the vertical apart (property, vehicle, tour). Uniqueness
    is checked against the store by the caller.
    """
    suffix = ''.join(secrets.choice(REFERENCE_ALPHABET) for _ in range(REFERENCE_LENGTH))
    return f"{REFERENCE_PREFIXES[vertical]}-{suffix}"


class BookingStatus(Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - PENDING -> CONFIRMED (payment or owner approval)
    - PENDING -> CANCELLED
    - CONFIRMED -> COMPLETED (stay or rental is over)
    - CONFIRMED -> CANCELLED
    CANCELLED and COMPLETED are final.
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'


ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


@dataclass(eq=False)
class BookingRecord(Aggregate):
    """
    Booking Aggregate Root

    Key invariants:
    - quantity >= 1
    - breakdown is the frozen price snapshot taken at commit; later changes
      to rates never alter it
    - only PENDING and CONFIRMED bookings hold capacity
    """

    unit_id: str
    reference: str
    dates: Interval
    quantity: int
    breakdown: PriceBreakdown
    created_at: datetime
    status: BookingStatus = BookingStatus.PENDING
    guests: int = 1
    metadata: Dict[str, Any] = field(default_factory=dict)

    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None
    cancellation_reason: str = ''

    def __post_init__(self):
        if self.quantity < 1:
            raise ValueError("Booking quantity must be at least 1")
        if self.guests < 1:
            raise ValueError("Guests count must be at least 1")

    @property
    def currency(self) -> str:
        return self.breakdown.currency

    @property
    def total(self):
        return self.breakdown.total

    @property
    def nights(self) -> int:
        return len(self.dates)

    @property
    def is_active(self) -> bool:
        """Active bookings count against the unit's capacity"""
        return self.status in ACTIVE_STATUSES

    def can_transition_to(self, status: BookingStatus) -> bool:
        return status in ALLOWED_TRANSITIONS[self.status]

    def confirm(self, now: datetime):
        """PENDING -> CONFIRMED"""
        self._transition(BookingStatus.CONFIRMED, now)
        self.confirmed_at = now

    def cancel(self, now: datetime, reason: str = ''):
        """PENDING or CONFIRMED -> CANCELLED, releasing the capacity"""
        self._transition(BookingStatus.CANCELLED, now, reason=reason)
        self.cancelled_at = now
        self.cancellation_reason = reason

    def complete(self, now: datetime):
        """
        CONFIRMED -> COMPLETED

        Only once the last night is over, i.e. on or after the end date.
        """
        if now.date() < self.dates.end:
            raise InvalidStatusTransition(
                f"Booking {self.reference} cannot be completed before {self.dates.end.isoformat()}"
            )
        self._transition(BookingStatus.COMPLETED, now)
        self.completed_at = now

    def _transition(self, new_status: BookingStatus, now: datetime, reason: str = ''):
        if not self.can_transition_to(new_status):
            raise InvalidStatusTransition(
                f"Cannot move booking {self.reference} from {self.status.value} to {new_status.value}"
            )

        from apps.bookings.domain.events import BookingStatusChanged

        old_status = self.status
        self.status = new_status
        self.add_event(BookingStatusChanged(
            aggregate_id=self.id,
            occurred_at=now,
            booking_id=self.id,
            reference=self.reference,
            unit_id=self.unit_id,
            old_status=old_status.value,
            new_status=new_status.value,
            reason=reason,
        ))

    def __str__(self):
        return f"Booking {self.reference} ({self.status.value})"

    def __repr__(self):
        return (
            f"BookingRecord(reference={self.reference}, unit_id={self.unit_id}, "
            f"status={self.status.value}, dates={self.dates!r}, quantity={self.quantity})"
        )
