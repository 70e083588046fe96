"""Inventory Adapter: the engine's only door to unit data."""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, List

from shared.domain.value_objects import Interval

from .domain.entities import BlockedPeriod, BookableUnit, DateOverride
from .domain.exceptions import NotFound
from .repositories import DjangoInventoryRepository

logger = logging.getLogger(__name__)


class InventoryAdapter:
    """
    Resolves unit ids to capacity and static price components.

    Side-effect free and uncached: every call reads the latest committed
    state (or the state of the caller's open transaction).
    """

    def __init__(self, repository: DjangoInventoryRepository | None = None):
        self.repository = repository or DjangoInventoryRepository()

    def get_unit(self, unit_id: str) -> BookableUnit:
        unit = self.repository.get(unit_id)
        if unit is None:
            logger.debug("Unit %s not found", unit_id)
            raise NotFound(unit_id)
        return unit

    def lock_unit(self, unit_id: str) -> BookableUnit:
        """get_unit() that also takes the unit's row lock for the open transaction"""
        unit = self.repository.lock(unit_id)
        if unit is None:
            raise NotFound(unit_id)
        return unit

    def blocked_periods(self, unit_id: str, dates: Interval) -> List[BlockedPeriod]:
        return self.repository.blocked_periods(unit_id, dates)

    def date_overrides(self, unit: BookableUnit, dates: Interval) -> Dict[date, DateOverride]:
        """Per-night owner settings of `unit` for the nights of `dates`"""
        return self.repository.date_overrides(unit.id, dates, unit.currency)
