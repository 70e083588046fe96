"""Booking records for FindoTrip."""

from __future__ import annotations

import uuid

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Booking(models.Model):
    """Committed reservation of capacity on a bookable unit."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")

    ACTIVE_STATUSES = (Status.PENDING, Status.CONFIRMED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    unit = models.ForeignKey(
        "inventory.BookableUnit",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    reference = models.CharField(max_length=16, unique=True, editable=False)
    start_date = models.DateField()
    end_date = models.DateField(help_text=_("Exclusive: the checkout or return day."))
    quantity = models.PositiveIntegerField(default=1)
    guests = models.PositiveSmallIntegerField(default=1)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    currency = models.CharField(max_length=3)
    total_minor = models.BigIntegerField(
        help_text=_("Total in minor units of the currency, as quoted at commit."),
    )
    price_snapshot = models.JSONField(
        help_text=_("Itemised price breakdown frozen at commit."),
    )
    metadata = models.JSONField(default=dict, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="booking_valid_dates",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="booking_positive_quantity",
            ),
        ]
        indexes = [
            models.Index(fields=["unit", "status", "start_date", "end_date"]),
        ]

    def __str__(self) -> str:
        return f"Booking {self.reference} for {self.unit_id}"
