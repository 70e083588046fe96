"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Commands:
- CommitBookingCommand: Re-check availability and store a PENDING booking
- ConfirmBookingCommand: PENDING -> CONFIRMED
- CancelBookingCommand: Release a booking's capacity
- CompleteBookingCommand: Close a booking whose dates have elapsed
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict
import logging

from django.db.utils import OperationalError

from shared.application.uow import DjangoUnitOfWork
from shared.domain.value_objects import Interval
from shared.infrastructure.database import is_timeout_error
from apps.bookings.availability import ConflictResolver
from apps.bookings.domain.entities import BookingRecord, BookingStatus, generate_reference
from apps.bookings.domain.exceptions import (
    BookingEngineError,
    BookingNotFound,
    CapacityExceeded,
    ConflictError,
    InvalidQuote,
    PastDate,
)
from apps.bookings.domain.pricing import PriceBreakdown, QuoteParams
from apps.bookings.pricing import PricingCalculator
from apps.bookings.repositories import DjangoBookingRepository
from apps.inventory.adapter import InventoryAdapter

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CommitBookingCommand:
    """
    Command to turn an accepted quote into a booking

    `today` and `now` are supplied by the caller; the engine reads no clock.
    """
    unit_id: str
    dates: Interval
    quantity: int
    breakdown: PriceBreakdown
    today: date
    now: datetime
    guests: int = 1
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ConfirmBookingCommand:
    """Command to confirm a booking after payment capture"""
    reference: str
    now: datetime


@dataclass
class CancelBookingCommand:
    """Command to cancel a booking"""
    reference: str
    now: datetime
    reason: str = ''


@dataclass
class CompleteBookingCommand:
    """Command to complete a booking after its dates have elapsed"""
    reference: str
    now: datetime


# ===== Command Handlers =====

class CommitBookingHandler:
    """
    Handler for CommitBooking command

    Strategy:
    1. Validate the request (quantity, past dates, breakdown shape)
    2. Start database transaction (atomic) with a bounded lock wait
    3. Lock the unit row (SELECT FOR UPDATE), serialising commits per unit
    4. Re-load active bookings and blocks, re-check availability
    5. Reprice the request; a quote that no longer matches is refused
    6. Allocate capacity in the Inventory aggregate and insert the record
    7. Commit transaction, then publish BookingCommitted
    A lock wait that times out aborts the commit with ConflictError.
    """

    def __init__(
        self,
        inventory: InventoryAdapter | None = None,
        booking_repo: DjangoBookingRepository | None = None,
        resolver: ConflictResolver | None = None,
        pricing: PricingCalculator | None = None,
        lock_timeout_ms: int | None = None,
        reference_attempts: int = 5,
    ):
        self.inventory = inventory or InventoryAdapter()
        self.booking_repo = booking_repo or DjangoBookingRepository()
        self.resolver = resolver or ConflictResolver(self.inventory, self.booking_repo)
        self.pricing = pricing or PricingCalculator(self.inventory)
        self.lock_timeout_ms = lock_timeout_ms
        self.reference_attempts = reference_attempts

    def handle(self, command: CommitBookingCommand) -> BookingRecord:
        """
        Handle booking commit

        Returns: the stored PENDING BookingRecord

        Raises:
            PastDate, NotFound, CapacityExceeded
            InvalidQuote: the breakdown is not what the unit charges today
            OccupancyExceeded: more guests than the units can host
            StayLengthViolation: stay shorter or longer than allowed
            ConflictError: capacity is gone, or the unit stayed locked too long
        """
        logger.info(
            f"Committing booking for unit {command.unit_id}, "
            f"dates {command.dates}, quantity {command.quantity}"
        )

        if command.quantity < 1:
            raise ValueError("Booking quantity must be at least 1")
        if command.dates.start < command.today:
            raise PastDate(command.dates, command.today)
        self._check_breakdown(command)

        try:
            with DjangoUnitOfWork(lock_timeout_ms=self.lock_timeout_ms) as uow:
                # Serialises concurrent commits for this unit until the transaction ends
                unit = self.inventory.lock_unit(command.unit_id)

                if command.quantity > unit.capacity:
                    raise CapacityExceeded(unit.id, command.quantity, unit.capacity)
                if command.breakdown.currency != unit.currency:
                    raise InvalidQuote(
                        f"Quote is in {command.breakdown.currency}, unit {unit.id} "
                        f"prices in {unit.currency}"
                    )

                inventory = self.resolver.load_inventory(unit, command.dates)
                availability = self.resolver.evaluate(inventory, command.dates, command.quantity)
                if not availability.available:
                    logger.info(
                        f"Commit conflict on unit {unit.id} for {command.dates}: "
                        f"{availability.reason_code}, {availability.remaining_capacity} left"
                    )
                    raise ConflictError(availability)
                self._reprice(unit, inventory, command)

                record = BookingRecord(
                    unit_id=unit.id,
                    reference=self._new_reference(unit),
                    dates=command.dates,
                    quantity=command.quantity,
                    guests=command.guests,
                    breakdown=command.breakdown,
                    metadata=dict(command.metadata),
                    status=BookingStatus.PENDING,
                    created_at=command.now,
                )
                inventory.allocate(record)
                self.booking_repo.add(record)

                uow.collect_events(inventory)
        except OperationalError as exc:
            if not is_timeout_error(exc):
                raise
            logger.warning(f"Lock wait on unit {command.unit_id} timed out: {exc}")
            raise ConflictError(lock_timeout=True) from exc

        logger.info(f"Booking committed: {record.reference} (ID: {record.id})")
        return record

    def _check_breakdown(self, command: CommitBookingCommand):
        breakdown = command.breakdown
        if breakdown.interval != command.dates:
            raise InvalidQuote(f"Quote covers {breakdown.interval}, booking covers {command.dates}")
        if breakdown.quantity != command.quantity:
            raise InvalidQuote(
                f"Quote is for {breakdown.quantity} unit(s), booking for {command.quantity}"
            )

    def _reprice(self, unit, inventory, command: CommitBookingCommand):
        """Price the request again from the locked state and compare it with the quote"""
        breakdown = command.breakdown
        params = QuoteParams(
            guests=command.guests,
            quantity=command.quantity,
            extras=tuple(fee.name for fee in breakdown.fees if fee.name in unit.extras),
        )
        current = self.pricing.price(
            unit, command.dates, params, today=command.today, overrides=inventory.overrides
        )
        if current != breakdown:
            logger.info(
                f"Quote for unit {unit.id} is stale or altered: "
                f"quoted {breakdown.total}, current price {current.total}"
            )
            raise InvalidQuote("Quote no longer matches the current price; request a new quote")

    def _new_reference(self, unit) -> str:
        for _ in range(self.reference_attempts):
            reference = generate_reference(unit.vertical)
            if not self.booking_repo.reference_exists(reference):
                return reference
            logger.warning(f"Booking reference collision on {reference}, regenerating")
        raise BookingEngineError(
            f"Could not generate a unique booking reference in {self.reference_attempts} attempts"
        )


class _LifecycleHandler:
    """Loads a booking under lock, applies one transition and saves it"""

    def __init__(self, booking_repo: DjangoBookingRepository | None = None):
        self.booking_repo = booking_repo or DjangoBookingRepository()

    def transition(self, record: BookingRecord, command):
        raise NotImplementedError

    def handle(self, command) -> BookingRecord:
        with DjangoUnitOfWork() as uow:
            record = self.booking_repo.get_by_reference(command.reference, lock=True)
            if not record:
                raise BookingNotFound(command.reference)

            self.transition(record, command)

            uow.collect_events(record)
            self.booking_repo.save(record, updated_at=command.now)

        logger.info(f"Booking {record.reference} is now {record.status.value}")
        return record


class ConfirmBookingHandler(_LifecycleHandler):
    """Handler for confirming a booking (PENDING -> CONFIRMED)"""

    def transition(self, record, command: ConfirmBookingCommand):
        record.confirm(command.now)


class CancelBookingHandler(_LifecycleHandler):
    """Handler for cancelling a booking; its capacity is free again on commit"""

    def transition(self, record, command: CancelBookingCommand):
        record.cancel(command.now, command.reason)


class CompleteBookingHandler(_LifecycleHandler):
    """Handler for completing a booking (CONFIRMED -> COMPLETED)"""

    def transition(self, record, command: CompleteBookingCommand):
        record.complete(command.now)
