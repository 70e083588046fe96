"""Serializers for the engine's boundary: request parsing and result rendering."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from shared.domain.value_objects import Interval

from .domain.pricing import PriceBreakdown, QuoteParams


class MoneyField(serializers.Field):
    """Renders Money in major units, e.g. Money(35000, 'PKR') -> "350.00"."""

    def __init__(self, **kwargs):
        kwargs["read_only"] = True
        super().__init__(**kwargs)

    def to_representation(self, value):  # type: ignore
        return str(value.major)


class EnumValueField(serializers.Field):
    def __init__(self, **kwargs):
        kwargs["read_only"] = True
        super().__init__(**kwargs)

    def to_representation(self, value):  # type: ignore
        return value.value


# ---- inbound -----------------------------------------------------------


class IntervalRequestSerializer(serializers.Serializer):
    unit_id = serializers.CharField(max_length=64)
    start = serializers.DateField()
    end = serializers.DateField()

    def validate(self, attrs):  # type: ignore
        if attrs["end"] <= attrs["start"]:
            raise serializers.ValidationError({"end": "End date must be after the start date."})
        attrs["interval"] = Interval(attrs["start"], attrs["end"])
        return attrs


class AvailabilityRequestSerializer(IntervalRequestSerializer):
    quantity = serializers.IntegerField(min_value=1, default=1)


class QuoteRequestSerializer(AvailabilityRequestSerializer):
    guests = serializers.IntegerField(min_value=1, default=1)
    extras = serializers.ListField(
        child=serializers.CharField(max_length=100),
        default=list,
        allow_empty=True,
    )

    def validate(self, attrs):  # type: ignore
        attrs = super().validate(attrs)
        attrs["params"] = QuoteParams(
            guests=attrs["guests"],
            quantity=attrs["quantity"],
            extras=tuple(attrs["extras"]),
        )
        return attrs


class CommitRequestSerializer(AvailabilityRequestSerializer):
    """
    Commit request carrying the quote the guest accepted.

    `price_snapshot` is the dict produced by PriceBreakdown.to_snapshot().
    """

    guests = serializers.IntegerField(min_value=1, default=1)
    price_snapshot = serializers.JSONField()
    metadata = serializers.DictField(required=False, default=dict)

    def validate_price_snapshot(self, value):  # type: ignore
        try:
            return PriceBreakdown.from_snapshot(value)
        except (KeyError, TypeError, ValueError, ArithmeticError) as exc:
            raise serializers.ValidationError(f"Malformed price snapshot: {exc}")


# ---- outbound ----------------------------------------------------------


class IntervalSerializer(serializers.Serializer):
    start = serializers.DateField()
    end = serializers.DateField()
    nights = serializers.IntegerField(source="length_in_days")


class NightLineSerializer(serializers.Serializer):
    date = serializers.DateField(source="night")
    list_rate = MoneyField()
    rate = MoneyField()
    quantity = serializers.IntegerField()
    amount = MoneyField()
    rule = EnumValueField()
    label = serializers.CharField(allow_blank=True)
    discount_percent = serializers.DecimalField(max_digits=5, decimal_places=2, allow_null=True)
    discount = serializers.CharField(allow_blank=True)


class FeeLineSerializer(serializers.Serializer):
    name = serializers.CharField()
    basis = EnumValueField()
    amount = MoneyField()
    taxable = serializers.BooleanField()


class TaxLineSerializer(serializers.Serializer):
    rate = serializers.DecimalField(max_digits=5, decimal_places=2)
    taxable_base = MoneyField()
    amount = MoneyField()


class PriceBreakdownSerializer(serializers.Serializer):
    currency = serializers.CharField()
    start = serializers.DateField(source="interval.start")
    end = serializers.DateField(source="interval.end")
    nights = NightLineSerializer(many=True)
    fees = FeeLineSerializer(many=True)
    tax = TaxLineSerializer(allow_null=True)
    subtotal = MoneyField()
    total = MoneyField()
    discount_percent = serializers.DecimalField(max_digits=5, decimal_places=2, allow_null=True)
    promotion = serializers.CharField(allow_blank=True)


class BlockedPeriodSerializer(serializers.Serializer):
    start = serializers.DateField(source="dates.start")
    end = serializers.DateField(source="dates.end")
    reason = EnumValueField()
    note = serializers.CharField(allow_blank=True)


class BookingSummarySerializer(serializers.Serializer):
    """Conflicting booking as shown to another guest: no price, no metadata."""

    reference = serializers.CharField()
    start = serializers.DateField(source="dates.start")
    end = serializers.DateField(source="dates.end")
    quantity = serializers.IntegerField()
    status = EnumValueField()


class BookingRecordSerializer(BookingSummarySerializer):
    unit_id = serializers.CharField()
    guests = serializers.IntegerField()
    currency = serializers.CharField()
    total = MoneyField()
    created_at = serializers.DateTimeField()
    breakdown = PriceBreakdownSerializer()
    metadata = serializers.DictField()


class StayViolationSerializer(serializers.Serializer):
    rule = EnumValueField()
    nights = serializers.IntegerField()
    limit = serializers.IntegerField()


class AvailabilityResultSerializer(serializers.Serializer):
    unit_id = serializers.CharField()
    start = serializers.DateField(source="dates.start")
    end = serializers.DateField(source="dates.end")
    available = serializers.BooleanField()
    remaining_capacity = serializers.IntegerField()
    capacity = serializers.IntegerField()
    requested_quantity = serializers.IntegerField()
    reason = serializers.CharField(source="reason_code", allow_null=True)
    conflicts = BookingSummarySerializer(many=True)
    blocks = BlockedPeriodSerializer(many=True)
    stay_violation = StayViolationSerializer(allow_null=True)


class NightAvailabilitySerializer(serializers.Serializer):
    date = serializers.DateField(source="night")
    capacity = serializers.IntegerField()
    reserved = serializers.IntegerField()
    remaining = serializers.IntegerField()
    blocked = serializers.BooleanField()
    available = serializers.BooleanField()


class ConflictSerializer(serializers.Serializer):
    """Body of a commit conflict, with alternatives re-offered to the guest."""

    detail = serializers.CharField()
    lock_timeout = serializers.BooleanField()
    availability = AvailabilityResultSerializer(allow_null=True)
    alternatives = IntervalSerializer(many=True)
