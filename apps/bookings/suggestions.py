"""Alternative-date suggestions for an unavailable interval."""

from __future__ import annotations

import logging
from datetime import date
from typing import List

from shared.domain.value_objects import Interval
from shared.infrastructure.database import bounded_read

from .availability import ConflictResolver

logger = logging.getLogger(__name__)


class AlternativeDateSuggester:
    """
    Proposes the nearest fully-available intervals of the same length.

    The unit's bookings and blocks are read once for the whole search window
    and every candidate is then evaluated in memory.
    """

    def __init__(
        self,
        resolver: ConflictResolver | None = None,
        window_days: int = 90,
        max_suggestions: int = 3,
    ):
        self.resolver = resolver or ConflictResolver()
        self.window_days = window_days
        self.max_suggestions = max_suggestions

    def candidates(
        self,
        original: Interval,
        today: date,
        search_window_days: int,
        include_earlier: bool = False,
    ) -> List[Interval]:
        """
        Same-length intervals around `original`, nearest first

        Later intervals start up to `search_window_days` after the original
        end date. Earlier ones (optional) start at most `search_window_days`
        before the original and never before today. At equal distance the
        later interval comes first.
        """
        latest_offset = (original.end - original.start).days + search_window_days
        offsets = list(range(1, latest_offset + 1))
        if include_earlier:
            offsets.extend(-days for days in range(1, search_window_days + 1))
        offsets.sort(key=lambda offset: (abs(offset), offset < 0))

        shifted = (original.shift(offset) for offset in offsets)
        return [candidate for candidate in shifted if candidate.start >= today]

    def suggest_alternatives(
        self,
        unit_id: str,
        original: Interval,
        *,
        today: date,
        search_window_days: int | None = None,
        max_suggestions: int | None = None,
        requested_qty: int = 1,
        include_earlier: bool = False,
    ) -> List[Interval]:
        """
        Up to `max_suggestions` bookable intervals, ordered by proximity

        A candidate qualifies when it has the capacity and breaks no
        stay-length rule of its arrival night.

        An empty list means nothing fits inside the window; it is a normal
        outcome, not an error.
        """
        window = self.window_days if search_window_days is None else search_window_days
        limit = self.max_suggestions if max_suggestions is None else max_suggestions
        if window < 0:
            raise ValueError("search_window_days cannot be negative")
        if limit <= 0:
            return []

        candidates = self.candidates(original, today, window, include_earlier)
        if not candidates:
            return []

        span = Interval(
            min(candidate.start for candidate in candidates),
            max(candidate.end for candidate in candidates),
        )
        with bounded_read(self.resolver.timeout_ms):
            unit = self.resolver.inventory.get_unit(unit_id)
            inventory = self.resolver.load_inventory(unit, span)

        found = []
        for candidate in candidates:
            if self.resolver.evaluate(inventory, candidate, requested_qty).bookable:
                found.append(candidate)
                if len(found) == limit:
                    break

        logger.info(
            "Found %d alternative(s) for %s on unit %s within %d days",
            len(found), original, unit_id, window,
        )
        return found
