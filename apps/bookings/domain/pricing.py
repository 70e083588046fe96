"""
Price Breakdown

The itemised result of a quote. Every line amount is integer money in the
unit's currency and the total is the plain sum of the lines, so a breakdown
re-read from its snapshot always adds up to the same total.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterator, Optional, Tuple

from shared.domain.base import ValueObject
from shared.domain.value_objects import Interval, Money

from apps.inventory.domain.entities import FeeBasis

from .exceptions import InvalidPricingParams


class RateSource(Enum):
    """Where the nightly rate of a line came from"""
    BASE = 'base'
    WEEKEND = 'weekend'
    SEASONAL = 'seasonal'
    EVENT = 'event'
    OVERRIDE = 'override'


@dataclass(frozen=True)
class QuoteParams(ValueObject):
    """
    Occupancy and extras of a quote

    quantity: units booked together (rooms of the same type)
    guests:   total occupants across those units
    extras:   names of optional fees the guest selected (insurance, driver, ...)
    """
    guests: int = 1
    quantity: int = 1
    extras: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.guests < 1:
            raise InvalidPricingParams("At least one guest is required")
        if self.quantity < 1:
            raise InvalidPricingParams("Quantity must be at least 1")
        object.__setattr__(self, 'extras', tuple(dict.fromkeys(self.extras)))


@dataclass(frozen=True)
class NightLine(ValueObject):
    night: date
    list_rate: Money
    rate: Money
    quantity: int
    amount: Money
    rule: RateSource = RateSource.BASE
    label: str = ''
    discount_percent: Optional[Decimal] = None
    discount: str = ''


@dataclass(frozen=True)
class FeeLine(ValueObject):
    name: str
    basis: FeeBasis
    amount: Money
    taxable: bool = True


@dataclass(frozen=True)
class TaxLine(ValueObject):
    rate: Decimal
    taxable_base: Money
    amount: Money


@dataclass(frozen=True)
class PriceBreakdown(ValueObject):
    """
    Itemised price of a stay or rental

    Key invariants:
    - at least one nightly line, for consecutive nights
    - subtotal == sum(nightly lines)
    - total == sum(nightly lines) + sum(fee lines) + tax line
    """
    currency: str
    nights: Tuple[NightLine, ...]
    fees: Tuple[FeeLine, ...]
    tax: Optional[TaxLine]
    subtotal: Money
    total: Money
    discount_percent: Optional[Decimal] = None
    promotion: str = ''

    def __post_init__(self):
        if not self.nights:
            raise ValueError("A price breakdown needs at least one night")
        for previous, current in zip(self.nights, self.nights[1:]):
            if current.night - previous.night != timedelta(days=1):
                raise ValueError("Nightly lines must cover consecutive nights")

        nightly = _sum((line.amount for line in self.nights), self.currency)
        if nightly != self.subtotal:
            raise ValueError(f"Subtotal {self.subtotal} does not match nightly lines {nightly}")
        lines_total = _sum(self.lines(), self.currency)
        if lines_total != self.total:
            raise ValueError(f"Total {self.total} does not match the sum of its lines {lines_total}")

    @classmethod
    def build(cls, currency, nights, fees=(), tax=None, discount_percent=None, promotion=''):
        """Assemble a breakdown, deriving subtotal and total from the lines"""
        nights = tuple(nights)
        fees = tuple(fees)
        subtotal = _sum((line.amount for line in nights), currency)
        total = subtotal + _sum((line.amount for line in fees), currency)
        if tax is not None:
            total = total + tax.amount
        return cls(
            currency=currency,
            nights=nights,
            fees=fees,
            tax=tax,
            subtotal=subtotal,
            total=total,
            discount_percent=discount_percent,
            promotion=promotion,
        )

    @property
    def interval(self) -> Interval:
        return Interval(self.nights[0].night, self.nights[-1].night + timedelta(days=1))

    @property
    def quantity(self) -> int:
        return self.nights[0].quantity

    @property
    def fees_total(self) -> Money:
        return _sum((line.amount for line in self.fees), self.currency)

    def lines(self) -> Iterator[Money]:
        """Amounts of every emitted line, in presentation order"""
        for night in self.nights:
            yield night.amount
        for fee in self.fees:
            yield fee.amount
        if self.tax is not None:
            yield self.tax.amount

    def to_snapshot(self) -> dict:
        """JSON-serialisable snapshot in integer minor units"""
        return {
            'currency': self.currency,
            'nights': [
                {
                    'date': line.night.isoformat(),
                    'list_rate': line.list_rate.minor,
                    'rate': line.rate.minor,
                    'quantity': line.quantity,
                    'amount': line.amount.minor,
                    'rule': line.rule.value,
                    'label': line.label,
                    'discount_percent': _decimal_text(line.discount_percent),
                    'discount': line.discount,
                }
                for line in self.nights
            ],
            'fees': [
                {
                    'name': fee.name,
                    'basis': fee.basis.value,
                    'amount': fee.amount.minor,
                    'taxable': fee.taxable,
                }
                for fee in self.fees
            ],
            'tax': None if self.tax is None else {
                'rate': str(self.tax.rate),
                'taxable_base': self.tax.taxable_base.minor,
                'amount': self.tax.amount.minor,
            },
            'subtotal': self.subtotal.minor,
            'total': self.total.minor,
            'discount_percent': _decimal_text(self.discount_percent),
            'promotion': self.promotion,
        }

    @classmethod
    def from_snapshot(cls, data: dict) -> 'PriceBreakdown':
        currency = data['currency']

        def money(minor):
            return Money(int(minor), currency)

        tax = data.get('tax')
        return cls(
            currency=currency,
            nights=tuple(
                NightLine(
                    night=date.fromisoformat(line['date']),
                    list_rate=money(line['list_rate']),
                    rate=money(line['rate']),
                    quantity=int(line['quantity']),
                    amount=money(line['amount']),
                    rule=RateSource(line.get('rule', RateSource.BASE.value)),
                    label=line.get('label', ''),
                    discount_percent=_decimal(line.get('discount_percent')),
                    discount=line.get('discount', ''),
                )
                for line in data['nights']
            ),
            fees=tuple(
                FeeLine(
                    name=fee['name'],
                    basis=FeeBasis(fee['basis']),
                    amount=money(fee['amount']),
                    taxable=bool(fee.get('taxable', True)),
                )
                for fee in data.get('fees', [])
            ),
            tax=None if tax is None else TaxLine(
                rate=Decimal(tax['rate']),
                taxable_base=money(tax['taxable_base']),
                amount=money(tax['amount']),
            ),
            subtotal=money(data['subtotal']),
            total=money(data['total']),
            discount_percent=_decimal(data.get('discount_percent')),
            promotion=data.get('promotion', ''),
        )


def _sum(amounts, currency: str) -> Money:
    total = Money.zero(currency)
    for amount in amounts:
        total = total + amount
    return total


def _decimal_text(value):
    return None if value is None else str(value)


def _decimal(text):
    return None if text is None else Decimal(text)
