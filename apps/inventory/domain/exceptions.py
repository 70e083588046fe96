"""Inventory lookup errors."""

from shared.domain.exceptions import DomainError


class NotFound(DomainError):
    """
    Raised when a unit id does not resolve to a bookable unit.

    Units switched off by their owner are reported the same way.
    """

    def __init__(self, unit_id: str):
        self.unit_id = unit_id
        super().__init__(f"Bookable unit {unit_id!r} not found or not available")
