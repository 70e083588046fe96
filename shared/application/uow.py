"""
Unit of Work Pattern

Wraps a database transaction and publishes the domain events collected
during it only once the transaction has committed.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from django.db import DEFAULT_DB_ALIAS, transaction

from shared.domain.base import DomainEvent
from shared.infrastructure.database import set_local_timeouts

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work pattern"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        """Commit the transaction"""

    @abstractmethod
    def rollback(self):
        """Rollback the transaction"""

    @abstractmethod
    def collect_events(self, aggregate):
        """Collect events from aggregate root"""


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Opens `transaction.atomic()`, optionally bounds how long statements may
    wait for row locks, and hands collected events to the message bus from
    `transaction.on_commit()`.

    Usage:
        with DjangoUnitOfWork(lock_timeout_ms=1500) as uow:
            unit = inventory_repo.lock_unit(unit_id)      # SELECT ... FOR UPDATE
            inventory = resolver.load_inventory(unit, interval)
            record = inventory.allocate(...)
            booking_repo.add(record)
            uow.collect_events(inventory)
        # transaction committed, BookingCommitted published
    """

    def __init__(self, lock_timeout_ms: int | None = None, using: str = DEFAULT_DB_ALIAS):
        self._events: List[DomainEvent] = []
        self._transaction = None
        self._lock_timeout_ms = lock_timeout_ms
        self._using = using

    def __enter__(self):
        """Start database transaction"""
        self._transaction = transaction.atomic(using=self._using)
        self._transaction.__enter__()
        try:
            set_local_timeouts(lock_timeout_ms=self._lock_timeout_ms, using=self._using)
        except BaseException as exc:
            self._transaction.__exit__(type(exc), exc, exc.__traceback__)
            raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Schedule events and leave the atomic block"""
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            if self._transaction:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)
                self._transaction = None

    def commit(self):
        """
        Hand events over for publication after commit

        The atomic block itself commits in __exit__; on_commit() callbacks
        run only if that commit succeeds.
        """
        events = self._events.copy()
        self._events.clear()
        logger.debug("Committing unit of work with %d event(s)", len(events))

        if events:
            transaction.on_commit(lambda: self._publish_events(events), using=self._using)

    def rollback(self):
        """Discard events of a rolled back transaction"""
        if self._events:
            logger.warning("Rolling back unit of work, discarding %d event(s)", len(self._events))
        self._events.clear()

    def collect_events(self, aggregate):
        """Take the pending events of an aggregate root"""
        new_events = getattr(aggregate, 'events', None)
        if new_events:
            self._events.extend(new_events)
            aggregate.clear_events()
            logger.debug(
                "Collected %d event(s) from %s %s",
                len(new_events), aggregate.__class__.__name__, aggregate.id,
            )

    def _publish_events(self, events: List[DomainEvent]):
        from shared.application.message_bus import message_bus

        logger.info("Publishing %d domain event(s) after commit", len(events))
        message_bus.publish_events(events)
