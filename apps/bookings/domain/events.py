"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import Interval, Money


@dataclass
class BookingCommitted(DomainEvent):
    """
    Event: capacity was allocated to a new PENDING booking

    Triggers (outside the engine):
    - Guest and provider notifications
    - Payment initiation
    """
    booking_id: UUID
    reference: str
    unit_id: str
    dates: Interval
    quantity: int
    total: Money

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'booking_id': str(self.booking_id),
            'reference': self.reference,
            'unit_id': self.unit_id,
            'start': self.dates.start.isoformat(),
            'end': self.dates.end.isoformat(),
            'quantity': self.quantity,
            'total': self.total.minor,
            'currency': self.total.currency,
        })
        return data


@dataclass
class BookingStatusChanged(DomainEvent):
    """
    Event: a booking moved through its lifecycle

    A change to CANCELLED frees the booking's capacity.
    """
    booking_id: UUID
    reference: str
    unit_id: str
    old_status: str
    new_status: str
    reason: str = ''

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'booking_id': str(self.booking_id),
            'reference': self.reference,
            'unit_id': self.unit_id,
            'old_status': self.old_status,
            'new_status': self.new_status,
            'reason': self.reason,
        })
        return data
