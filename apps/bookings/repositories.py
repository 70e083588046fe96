"""Django ORM access to booking records."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from django.utils import timezone  # type: ignore

from shared.domain.value_objects import Interval

from .domain.entities import BookingRecord, BookingStatus
from .domain.pricing import PriceBreakdown
from .models import Booking

logger = logging.getLogger(__name__)


class DjangoBookingRepository:
    """Stores BookingRecord aggregates as Booking rows."""

    def active_overlapping(self, unit_id: str, dates: Interval) -> List[BookingRecord]:
        """PENDING and CONFIRMED bookings of the unit sharing a night with `dates`"""

        rows = Booking.objects.filter(
            unit_id=unit_id,
            status__in=Booking.ACTIVE_STATUSES,
            start_date__lt=dates.end,
            end_date__gt=dates.start,
        ).order_by("start_date", "created_at")
        return [to_domain(row) for row in rows]

    def reference_exists(self, reference: str) -> bool:
        return Booking.objects.filter(reference=reference).exists()

    def get_by_reference(self, reference: str, lock: bool = False) -> BookingRecord | None:
        queryset = Booking.objects.all()
        if lock:
            queryset = queryset.select_for_update()
        row = queryset.filter(reference=reference).first()
        return to_domain(row) if row is not None else None

    def add(self, record: BookingRecord) -> None:
        Booking.objects.create(
            id=record.id,
            unit_id=record.unit_id,
            reference=record.reference,
            start_date=record.dates.start,
            end_date=record.dates.end,
            quantity=record.quantity,
            guests=record.guests,
            status=record.status.value,
            currency=record.currency,
            total_minor=record.total.minor,
            price_snapshot=record.breakdown.to_snapshot(),
            metadata=record.metadata,
            created_at=record.created_at,
        )
        logger.debug("Stored booking %s for unit %s", record.reference, record.unit_id)

    def save(self, record: BookingRecord, updated_at: datetime | None = None) -> None:
        """
        Persist lifecycle changes; dates, quantity and price are immutable

        QuerySet.update() skips auto_now, so updated_at is written here:
        the transition time when given, the current time otherwise.
        """

        updated = Booking.objects.filter(pk=record.id).update(
            updated_at=updated_at or timezone.now(),
            status=record.status.value,
            confirmed_at=record.confirmed_at,
            cancelled_at=record.cancelled_at,
            completed_at=record.completed_at,
            cancellation_reason=record.cancellation_reason,
        )
        if not updated:
            raise ValueError(f"Booking {record.reference} does not exist")


def to_domain(row: Booking) -> BookingRecord:
    return BookingRecord(
        id=row.id,
        unit_id=row.unit_id,
        reference=row.reference,
        dates=Interval(row.start_date, row.end_date),
        quantity=row.quantity,
        guests=row.guests,
        status=BookingStatus(row.status),
        breakdown=PriceBreakdown.from_snapshot(row.price_snapshot),
        created_at=row.created_at,
        metadata=dict(row.metadata or {}),
        confirmed_at=row.confirmed_at,
        cancelled_at=row.cancelled_at,
        completed_at=row.completed_at,
        cancellation_reason=row.cancellation_reason,
    )
