"""Exceptions shared by every domain of the engine."""


class DomainError(Exception):
    """Base class for every error raised by the engine's domain layer."""


class InvalidInterval(DomainError, ValueError):
    """Raised when an interval does not end strictly after it starts."""


class CurrencyMismatch(DomainError, ValueError):
    """Raised when money in different currencies is combined."""


class StoreTimeout(DomainError):
    """
    Raised when a record-store read exceeded its time bound.

    Safe to retry once with backoff.
    """
