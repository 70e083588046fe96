"""Inventory models for FindoTrip.

A bookable unit is the smallest reservable entity: a group of identical
rooms of one room type, or a single vehicle or tour slot. Units carry their
static pricing (base rate, weekend rate, seasonal adjustments, special
events, discount rules, fee schedule, tax) and an owner-maintained calendar
of per-night overrides and blocked periods.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


def default_weekend_days() -> list[int]:
    # Friday and Saturday nights (Monday == 0)
    return [4, 5]


def validate_weekdays(value) -> None:
    """Weekday lists hold integers from 0 (Monday) to 6 (Sunday)."""
    if not isinstance(value, list):
        raise ValidationError(_("Expected a list of weekday numbers."), code="invalid")
    invalid = [day for day in value if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6]
    if invalid:
        raise ValidationError(
            _("Invalid weekday number(s) %(days)s: use 0 (Monday) to 6 (Sunday)."),
            code="invalid_weekday",
            params={"days": invalid},
        )


class BookableUnit(models.Model):
    """Reservable room type, vehicle or tour."""

    class Vertical(models.TextChoices):
        ROOM_TYPE = "room_type", _("Room type")
        VEHICLE = "vehicle", _("Vehicle")
        TOUR = "tour", _("Tour")

    id = models.CharField(primary_key=True, max_length=64)
    provider_id = models.CharField(
        max_length=64,
        blank=True,
        help_text=_("Opaque id of the owning provider."),
    )
    vertical = models.CharField(
        max_length=20,
        choices=Vertical.choices,
        default=Vertical.ROOM_TYPE,
    )
    name = models.CharField(max_length=255)
    capacity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        help_text=_("Interchangeable instances bookable in parallel (1 for a unique vehicle)."),
    )
    is_available = models.BooleanField(
        default=True,
        help_text=_("Unset by the owner to take the unit off the market."),
    )
    currency = models.CharField(max_length=3, default="PKR")
    base_rate = models.DecimalField(max_digits=12, decimal_places=3)
    weekend_rate = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        null=True,
        blank=True,
    )
    weekend_days = models.JSONField(
        default=default_weekend_days,
        blank=True,
        validators=[validate_weekdays],
        help_text=_("Nights charged at the weekend rate (0=Mon ... 6=Sun)."),
    )
    discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    promotional_label = models.CharField(max_length=100, blank=True)
    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("Tax percentage applied to the nightly subtotal and taxable fees."),
    )
    min_nights = models.PositiveSmallIntegerField(default=1)
    max_nights = models.PositiveSmallIntegerField(null=True, blank=True)
    max_guests = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        help_text=_("Occupancy limit of one unit instance."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Bookable unit")
        verbose_name_plural = _("Bookable units")
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(capacity__gte=1),
                name="unit_capacity_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(max_nights__isnull=True) | models.Q(max_nights__gte=models.F("min_nights")),
                name="unit_min_max_nights_valid",
            ),
        ]
        indexes = [
            models.Index(fields=["provider_id", "vertical"]),
        ]

    def __str__(self) -> str:
        return self.name


class UnitFee(models.Model):
    """Entry of a unit's fee schedule."""

    class Basis(models.TextChoices):
        PER_STAY = "per_stay", _("Once per booking")
        PER_DAY = "per_day", _("Per night or rental day")
        PERCENT = "percent", _("Percentage of the nightly subtotal")

    unit = models.ForeignKey(BookableUnit, on_delete=models.CASCADE, related_name="fees")
    name = models.CharField(max_length=100)
    basis = models.CharField(max_length=20, choices=Basis.choices, default=Basis.PER_STAY)
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        null=True,
        blank=True,
        help_text=_("Fixed amount for per-stay and per-day fees."),
    )
    percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Percentage for percent-based fees."),
    )
    taxable = models.BooleanField(default=True)
    optional = models.BooleanField(
        default=False,
        help_text=_("Charged only when the guest selects this extra."),
    )
    position = models.PositiveSmallIntegerField(default=0)

    class Meta:
        verbose_name = _("Unit fee")
        verbose_name_plural = _("Unit fees")
        ordering = ["position", "id"]
        constraints = [
            models.UniqueConstraint(fields=["unit", "name"], name="unit_fee_unique_name"),
            models.CheckConstraint(
                condition=(
                    (models.Q(basis="percent") & models.Q(percent__isnull=False))
                    | (~models.Q(basis="percent") & models.Q(amount__isnull=False))
                ),
                name="unit_fee_value_matches_basis",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.unit_id}: {self.name} ({self.basis})"


class UnitSeasonalRate(models.Model):
    """Seasonal adjustment of a unit's base rate."""

    class Adjustment(models.TextChoices):
        FIXED_PRICE = "fixed_price", _("Fixed nightly price")
        FIXED_INCREASE = "fixed_increase", _("Base rate plus an amount")
        FIXED_DECREASE = "fixed_decrease", _("Base rate minus an amount")
        PERCENT_INCREASE = "percent_increase", _("Base rate plus a percentage")
        PERCENT_DECREASE = "percent_decrease", _("Base rate minus a percentage")

    unit = models.ForeignKey(BookableUnit, on_delete=models.CASCADE, related_name="seasonal_rates")
    start_date = models.DateField()
    end_date = models.DateField(help_text=_("Last night covered by the rate (inclusive)."))
    adjustment = models.CharField(
        max_length=20,
        choices=Adjustment.choices,
        default=Adjustment.FIXED_PRICE,
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        null=True,
        blank=True,
        help_text=_("Price or increment of the fixed adjustments."),
    )
    percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Rate of the percentage adjustments."),
    )
    days_of_week = models.JSONField(
        default=list,
        blank=True,
        validators=[validate_weekdays],
        help_text=_("Nights the season applies to (0=Mon ... 6=Sun); empty for every night."),
    )
    label = models.CharField(max_length=100, blank=True)
    priority = models.PositiveSmallIntegerField(
        default=0,
        help_text=_("Wins over overlapping seasons with a lower priority."),
    )
    min_nights = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1)],
        help_text=_("Minimum stay for arrivals inside the season."),
    )

    class Meta:
        verbose_name = _("Seasonal rate")
        verbose_name_plural = _("Seasonal rates")
        ordering = ["start_date"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gte=models.F("start_date")),
                name="seasonal_rate_valid_date_range",
            ),
            models.CheckConstraint(
                condition=(
                    (models.Q(adjustment__in=["percent_increase", "percent_decrease"]) & models.Q(percent__isnull=False))
                    | (~models.Q(adjustment__in=["percent_increase", "percent_decrease"]) & models.Q(amount__isnull=False))
                ),
                name="seasonal_rate_value_matches_adjustment",
            ),
        ]
        indexes = [
            models.Index(fields=["unit", "start_date", "end_date", "priority"]),
        ]

    def __str__(self) -> str:
        return f"{self.unit_id}: {self.start_date} - {self.end_date} ({self.adjustment})"


class UnitSpecialEvent(models.Model):
    """Festival or holiday during which the base rate is multiplied."""

    unit = models.ForeignKey(BookableUnit, on_delete=models.CASCADE, related_name="special_events")
    name = models.CharField(max_length=100)
    start_date = models.DateField()
    end_date = models.DateField(help_text=_("Last night of the event (inclusive)."))
    multiplier = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    min_nights = models.PositiveSmallIntegerField(null=True, blank=True, validators=[MinValueValidator(1)])
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = _("Special event")
        verbose_name_plural = _("Special events")
        ordering = ["start_date"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gte=models.F("start_date")),
                name="special_event_valid_date_range",
            ),
            models.CheckConstraint(
                condition=models.Q(multiplier__gt=0),
                name="special_event_multiplier_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.unit_id}: {self.name} x{self.multiplier}"


class UnitDiscountRule(models.Model):
    """Stay-length or lead-time discount of a unit."""

    class Kind(models.TextChoices):
        LONG_STAY = "long_stay", _("Long stay")
        WEEKLY = "weekly", _("Weekly stay")
        MONTHLY = "monthly", _("Monthly stay")
        EARLY_BIRD = "early_bird", _("Early bird")
        LAST_MINUTE = "last_minute", _("Last minute")

    unit = models.ForeignKey(BookableUnit, on_delete=models.CASCADE, related_name="discount_rules")
    kind = models.CharField(max_length=20, choices=Kind.choices)
    percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    min_nights = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        help_text=_("Stay length that earns long-stay, weekly and monthly discounts."),
    )
    days_in_advance = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        help_text=_("Early bird: booked at least this many days before arrival."),
    )
    days_before_arrival = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        help_text=_("Last minute: booked at most this many days before arrival."),
    )
    valid_from = models.DateField(null=True, blank=True)
    valid_until = models.DateField(null=True, blank=True)
    label = models.CharField(max_length=100, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = _("Discount rule")
        verbose_name_plural = _("Discount rules")
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(percent__gte=0) & models.Q(percent__lte=100),
                name="discount_rule_percent_range",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.unit_id}: {self.kind} -{self.percent}%"


class UnitDateOverride(models.Model):
    """Owner settings for one night of a unit's calendar."""

    unit = models.ForeignKey(BookableUnit, on_delete=models.CASCADE, related_name="date_overrides")
    date = models.DateField()
    nightly_rate = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    available_units = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Units offered on this night; capped by the unit's capacity."),
    )
    min_nights = models.PositiveSmallIntegerField(null=True, blank=True, validators=[MinValueValidator(1)])
    max_nights = models.PositiveSmallIntegerField(null=True, blank=True, validators=[MinValueValidator(1)])
    note = models.CharField(max_length=255, blank=True)

    class Meta:
        verbose_name = _("Date override")
        verbose_name_plural = _("Date overrides")
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(fields=["unit", "date"], name="date_override_unique_night"),
        ]

    def __str__(self) -> str:
        return f"{self.unit_id}: {self.date}"


class BlockedPeriod(models.Model):
    """Dates on which a unit cannot be booked regardless of capacity."""

    class Reason(models.TextChoices):
        MANUAL = "manual", _("Blocked by owner")
        SYNC = "sync", _("Unavailable on an external calendar")
        MAINTENANCE = "maintenance", _("Maintenance")

    unit = models.ForeignKey(BookableUnit, on_delete=models.CASCADE, related_name="blocked_periods")
    start_date = models.DateField()
    end_date = models.DateField(help_text=_("First free day again (exclusive)."))
    reason = models.CharField(max_length=20, choices=Reason.choices, default=Reason.MANUAL)
    note = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Blocked period")
        verbose_name_plural = _("Blocked periods")
        ordering = ["start_date"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="blocked_period_valid_date_range",
            ),
        ]
        indexes = [
            models.Index(fields=["unit", "start_date", "end_date"]),
        ]

    def __str__(self) -> str:
        return f"{self.unit_id}: {self.start_date} - {self.end_date} ({self.reason})"
