"""
Booking Engine Errors

Every error the engine raises to its callers. "Unavailable" is not an
error: it is a normal AvailabilityResult(available=False).

    InvalidInterval      end <= start; rejected before any store access
    PastDate             interval starts before today on a booking path
    NotFound             unit id does not resolve
    CapacityExceeded     more units requested than the unit has at all
    ConflictError        capacity lost between quote and commit
    StayLengthViolation  stay shorter or longer than the unit allows
    StoreTimeout         a read exceeded its bound; retry once with backoff
"""

from shared.domain.exceptions import DomainError, InvalidInterval, StoreTimeout
from apps.inventory.domain.exceptions import NotFound

__all__ = [
    'BookingEngineError',
    'BookingNotFound',
    'CapacityExceeded',
    'ConflictError',
    'DomainError',
    'InvalidInterval',
    'InvalidPricingParams',
    'InvalidQuote',
    'InvalidStatusTransition',
    'NotFound',
    'OccupancyExceeded',
    'PastDate',
    'StayLengthViolation',
    'StoreTimeout',
]


class BookingEngineError(DomainError):
    """Base class for errors specific to availability, pricing and booking."""


class PastDate(BookingEngineError):
    """Raised when a booking-path request starts before today."""

    def __init__(self, dates, today):
        self.dates = dates
        self.today = today
        super().__init__(f"Interval {dates} starts before {today.isoformat()}")


class CapacityExceeded(BookingEngineError):
    """Raised when the requested quantity exceeds the unit's total capacity."""

    def __init__(self, unit_id: str, requested: int, capacity: int):
        self.unit_id = unit_id
        self.requested = requested
        self.capacity = capacity
        super().__init__(
            f"Unit {unit_id} has {capacity} unit(s) in total, {requested} requested"
        )


class ConflictError(BookingEngineError):
    """
    Raised by Booking Commit when the requested capacity is no longer free.

    Carries the fresh availability result so the caller can re-offer
    alternatives without another round-trip. `lock_timeout` is set when the
    commit gave up waiting for a competing commit; no fresh availability is
    known in that case.
    """

    def __init__(self, availability=None, *, lock_timeout: bool = False, message: str = ''):
        self.availability = availability
        self.lock_timeout = lock_timeout
        if not message:
            if lock_timeout:
                message = "Timed out waiting for a concurrent booking of the same unit; try again"
            elif availability is not None:
                message = f"Unit is no longer available ({availability.reason_code})"
            else:
                message = "Unit is no longer available"
        super().__init__(message)

    @property
    def conflicts(self):
        return list(self.availability.conflicts) if self.availability is not None else []

    @property
    def blocks(self):
        return list(self.availability.blocks) if self.availability is not None else []


class OccupancyExceeded(BookingEngineError):
    """Raised when more guests are quoted than the booked units can host."""

    def __init__(self, guests: int, limit: int):
        self.guests = guests
        self.limit = limit
        super().__init__(f"{guests} guest(s) requested, at most {limit} allowed")


class InvalidPricingParams(BookingEngineError, ValueError):
    """Raised for malformed quote parameters, e.g. an unknown extra."""


class InvalidQuote(BookingEngineError, ValueError):
    """Raised when a breakdown handed to commit does not match the booking."""


class InvalidStatusTransition(BookingEngineError):
    """Raised when a booking lifecycle transition is not allowed."""


class BookingNotFound(BookingEngineError):
    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Booking {reference!r} not found")


class StayLengthViolation(BookingEngineError):
    """Raised on quote and commit for a stay breaking a minimum or maximum stay rule."""

    def __init__(self, violation):
        self.violation = violation
        super().__init__(str(violation))

    @property
    def code(self) -> str:
        return self.violation.rule.value
