"""
Common Value Objects

Value objects used across the inventory and booking domains:
- Money: A monetary amount held in integer minor units of its currency
- Interval: A half-open range of calendar dates [start, end)
- NightSequence: The nights of an interval, iterated lazily
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterator

from shared.domain.base import ValueObject
from shared.domain.exceptions import CurrencyMismatch, InvalidInterval

DEFAULT_CURRENCY = 'PKR'

# ISO 4217 exponents that differ from the usual two decimal places.
MINOR_UNIT_EXPONENTS = {
    'BHD': 3,
    'CLP': 0,
    'ISK': 0,
    'JOD': 3,
    'JPY': 0,
    'KRW': 0,
    'KWD': 3,
    'OMR': 3,
    'TND': 3,
    'VND': 0,
}


def currency_exponent(currency: str) -> int:
    """Number of decimal places of the currency's minor unit."""
    return MINOR_UNIT_EXPONENTS.get(currency.upper(), 2)


def round_half_up(value: Decimal) -> int:
    """Round a Decimal to the nearest integer, halves away from zero."""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Amounts are integers in the currency's minor unit (paisa, cents, fils)
    so that sums never drift. Conversion to major units happens only when
    rendering.
    """
    minor: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self):
        if isinstance(self.minor, bool) or not isinstance(self.minor, int):
            raise TypeError("Money must be built from an integer amount of minor units")
        if self.minor < 0:
            raise ValueError("Amount cannot be negative")
        if not self.currency or len(self.currency) != 3 or not self.currency.isalpha():
            raise ValueError(f"Invalid currency code: {self.currency!r}")
        object.__setattr__(self, 'currency', self.currency.upper())

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> 'Money':
        return cls(0, currency)

    @classmethod
    def from_major(cls, amount, currency: str = DEFAULT_CURRENCY) -> 'Money':
        """Build money from a major-unit amount such as Decimal('149.99')."""
        exponent = currency_exponent(currency)
        scaled = Decimal(str(amount)).scaleb(exponent)
        return cls(round_half_up(scaled), currency)

    @property
    def major(self) -> Decimal:
        """Amount in major units, with the currency's number of decimal places"""
        return Decimal(self.minor).scaleb(-currency_exponent(self.currency))

    def percent(self, rate: Decimal) -> 'Money':
        """
        Return `rate` percent of this amount, rounded once to the minor unit

        Example: Money(35000, 'PKR').percent(Decimal('10')) -> Money(3500, 'PKR')
        """
        return Money(round_half_up(Decimal(self.minor) * Decimal(rate) / 100), self.currency)

    def _check_currency(self, other: 'Money') -> None:
        if not isinstance(other, Money):
            raise TypeError("Can only combine Money with Money")
        if self.currency != other.currency:
            raise CurrencyMismatch(
                f"Cannot combine different currencies: {self.currency} and {other.currency}"
            )

    def __add__(self, other: 'Money') -> 'Money':
        self._check_currency(other)
        return Money(self.minor + other.minor, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        self._check_currency(other)
        return Money(self.minor - other.minor, self.currency)

    def __mul__(self, factor: int) -> 'Money':
        if isinstance(factor, bool) or not isinstance(factor, int):
            raise TypeError("Money can only be multiplied by an integer; use percent() for rates")
        return Money(self.minor * factor, self.currency)

    __rmul__ = __mul__

    def __lt__(self, other: 'Money') -> bool:
        self._check_currency(other)
        return self.minor < other.minor

    def __str__(self):
        return f"{self.major:,} {self.currency}"

    def __repr__(self):
        return f"Money({self.minor}, '{self.currency}')"


@dataclass(frozen=True)
class Interval(ValueObject):
    """
    Date interval value object

    Represents the range from start (inclusive) to end (exclusive), so a stay
    checking out on the day another checks in does not overlap it. The number
    of nights (or rental days) is end - start and is always at least one.
    """
    start: date
    end: date

    def __post_init__(self):
        # datetime is a date subclass; keep only the calendar day
        for name in ('start', 'end'):
            value = getattr(self, name)
            if isinstance(value, datetime):
                object.__setattr__(self, name, value.date())
            elif not isinstance(value, date):
                raise TypeError(f"Interval {name} must be a date, got {type(value).__name__}")
        if self.end <= self.start:
            raise InvalidInterval(
                f"Interval end ({self.end}) must be after its start ({self.start})"
            )

    @classmethod
    def of(cls, start: date, nights: int) -> 'Interval':
        """Interval starting at `start` and lasting `nights` nights"""
        return cls(start, start + timedelta(days=nights))

    def overlaps(self, other: 'Interval') -> bool:
        """
        Check if this interval shares at least one night with another

        Examples:
            - [25, 28) overlaps [27, 30) -> True
            - [25, 28) overlaps [28, 31) -> False (checkout day == checkin day)
        """
        if not isinstance(other, Interval):
            raise TypeError("Can only check overlap with another Interval")
        return self.start < other.end and other.start < self.end

    def contains(self, day: date) -> bool:
        """True if `day` is one of the nights of this interval"""
        return self.start <= day < self.end

    def covers(self, other: 'Interval') -> bool:
        """True if every night of `other` is inside this interval"""
        return self.start <= other.start and other.end <= self.end

    def shift(self, days: int) -> 'Interval':
        """Same-length interval moved by `days` (negative moves backwards)"""
        delta = timedelta(days=days)
        return Interval(self.start + delta, self.end + delta)

    def nights(self) -> 'NightSequence':
        return NightSequence(self)

    @property
    def length_in_days(self) -> int:
        return (self.end - self.start).days

    def __len__(self) -> int:
        return self.length_in_days

    def __str__(self):
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"

    def __repr__(self):
        return f"Interval({self.start.isoformat()}, {self.end.isoformat()})"


class NightSequence:
    """
    Lazy, restartable sequence of the nights of an interval

    Every call to iter() starts again from the first night.
    """

    __slots__ = ('_interval',)

    def __init__(self, interval: Interval):
        self._interval = interval

    def __iter__(self) -> Iterator[date]:
        day = self._interval.start
        while day < self._interval.end:
            yield day
            day += timedelta(days=1)

    def __len__(self) -> int:
        return len(self._interval)

    def __contains__(self, day) -> bool:
        return isinstance(day, date) and self._interval.contains(day)

    def __repr__(self):
        return f"NightSequence({self._interval!r})"


def overlaps(a: Interval, b: Interval) -> bool:
    """Half-open overlap test, symmetric in its arguments"""
    return a.overlaps(b)


def length_in_days(interval: Interval) -> int:
    return interval.length_in_days


def enumerate_nights(interval: Interval) -> NightSequence:
    return interval.nights()
