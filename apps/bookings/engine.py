"""
Availability & Pricing Engine facade.

The single entry point request handlers use:

    engine = get_engine()
    result = engine.check_availability("rt-deluxe", Interval(d1, d2), 2)
    if result.available:
        quote = engine.quote("rt-deluxe", Interval(d1, d2), QuoteParams(quantity=2, guests=3))
        record = engine.commit("rt-deluxe", Interval(d1, d2), 2, quote)
    else:
        alternatives = engine.suggest_alternatives("rt-deluxe", Interval(d1, d2), requested_qty=2)

"today" and "now" default to Django's clock only here; every component
below receives them explicitly.
"""

from __future__ import annotations

from datetime import date, datetime
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Sequence

from django.utils import timezone  # type: ignore

from shared.domain.value_objects import Interval

from apps.inventory.adapter import InventoryAdapter

from .application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    CommitBookingCommand,
    CommitBookingHandler,
    CompleteBookingCommand,
    CompleteBookingHandler,
    ConfirmBookingCommand,
    ConfirmBookingHandler,
)
from .availability import ConflictResolver
from .conf import engine_settings
from .domain.availability import AvailabilityResult, NightAvailability
from .domain.entities import BookingRecord
from .domain.pricing import PriceBreakdown, QuoteParams
from .pricing import PricingCalculator
from .repositories import DjangoBookingRepository
from .suggestions import AlternativeDateSuggester


def as_interval(value: Interval | Sequence[date]) -> Interval:
    """Accept an Interval or a (start, end) pair of dates"""
    if isinstance(value, Interval):
        return value
    start, end = value
    return Interval(start, end)


class BookingEngine:
    def __init__(
        self,
        inventory: InventoryAdapter | None = None,
        bookings: DjangoBookingRepository | None = None,
        config: Mapping[str, Any] | None = None,
    ):
        cfg = {**engine_settings(), **(config or {})}
        self.inventory = inventory or InventoryAdapter()
        self.bookings = bookings or DjangoBookingRepository()
        self.resolver = ConflictResolver(
            self.inventory, self.bookings, timeout_ms=cfg["STORE_TIMEOUT_MS"]
        )
        self.pricing = PricingCalculator(self.inventory, timeout_ms=cfg["STORE_TIMEOUT_MS"])
        self.suggester = AlternativeDateSuggester(
            self.resolver,
            window_days=cfg["SUGGESTION_WINDOW_DAYS"],
            max_suggestions=cfg["MAX_SUGGESTIONS"],
        )
        self.committer = CommitBookingHandler(
            self.inventory,
            self.bookings,
            self.resolver,
            self.pricing,
            lock_timeout_ms=cfg["LOCK_TIMEOUT_MS"],
            reference_attempts=cfg["REFERENCE_ATTEMPTS"],
        )
        self.confirmer = ConfirmBookingHandler(self.bookings)
        self.canceller = CancelBookingHandler(self.bookings)
        self.completer = CompleteBookingHandler(self.bookings)

    # Read side

    def check_availability(
        self,
        unit_id: str,
        interval,
        requested_qty: int = 1,
        *,
        today: date | None = None,
        allow_historical: bool = False,
    ) -> AvailabilityResult:
        return self.resolver.check_availability(
            unit_id,
            as_interval(interval),
            requested_qty,
            today=today or timezone.localdate(),
            allow_historical=allow_historical,
        )

    def availability_calendar(
        self,
        unit_id: str,
        interval,
        *,
        today: date | None = None,
        allow_historical: bool = False,
    ) -> List[NightAvailability]:
        return self.resolver.availability_calendar(
            unit_id,
            as_interval(interval),
            today=today or timezone.localdate(),
            allow_historical=allow_historical,
        )

    def quote(
        self,
        unit_id: str,
        interval,
        params: QuoteParams | None = None,
        *,
        today: date | None = None,
    ) -> PriceBreakdown:
        return self.pricing.quote(
            unit_id, as_interval(interval), params, today=today or timezone.localdate()
        )

    def suggest_alternatives(
        self,
        unit_id: str,
        original_interval,
        search_window_days: int | None = None,
        max_suggestions: int | None = None,
        *,
        requested_qty: int = 1,
        include_earlier: bool = False,
        today: date | None = None,
    ) -> List[Interval]:
        return self.suggester.suggest_alternatives(
            unit_id,
            as_interval(original_interval),
            today=today or timezone.localdate(),
            search_window_days=search_window_days,
            max_suggestions=max_suggestions,
            requested_qty=requested_qty,
            include_earlier=include_earlier,
        )

    # Write side

    def commit(
        self,
        unit_id: str,
        interval,
        qty: int,
        breakdown: PriceBreakdown,
        metadata: Dict[str, Any] | None = None,
        *,
        guests: int = 1,
        today: date | None = None,
        now: datetime | None = None,
    ) -> BookingRecord:
        now = now or timezone.now()
        return self.committer.handle(CommitBookingCommand(
            unit_id=unit_id,
            dates=as_interval(interval),
            quantity=qty,
            breakdown=breakdown,
            today=today or timezone.localdate(now),
            now=now,
            guests=guests,
            metadata=dict(metadata or {}),
        ))

    def confirm(self, reference: str, *, now: datetime | None = None) -> BookingRecord:
        return self.confirmer.handle(ConfirmBookingCommand(reference, now or timezone.now()))

    def cancel(self, reference: str, reason: str = '', *, now: datetime | None = None) -> BookingRecord:
        return self.canceller.handle(CancelBookingCommand(reference, now or timezone.now(), reason))

    def complete(self, reference: str, *, now: datetime | None = None) -> BookingRecord:
        return self.completer.handle(CompleteBookingCommand(reference, now or timezone.now()))


@lru_cache(maxsize=1)
def get_engine() -> BookingEngine:
    """Process-wide engine built from settings.BOOKING_ENGINE"""
    return BookingEngine()
