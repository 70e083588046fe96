"""
Base Domain Classes

Foundational building blocks shared by the inventory and booking domains:
- Entity: Objects with unique identity
- ValueObject: Immutable objects compared by value
- Aggregate: Consistency boundaries that collect domain events
- DomainEvent: Events that represent something that happened
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime
from typing import List
from uuid import UUID, uuid4


@dataclass
class Entity(ABC):
    """
    Base class for all entities

    Entities have unique identity and are mutable.
    Two entities are equal if their IDs are equal.
    """
    id: UUID = field(default_factory=uuid4, kw_only=True)

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    Two value objects are equal if all their attributes are equal.
    """
    pass


@dataclass(eq=False)
class Aggregate(Entity):
    """
    Base class for aggregate roots

    Aggregates are the consistency boundaries of the engine.
    They collect domain events that are published after a successful commit.
    """
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False)

    def add_event(self, event: 'DomainEvent'):
        """Queue a domain event for publication"""
        self._events.append(event)

    def clear_events(self):
        """Drop collected events (called by the unit of work once it took them)"""
        self._events.clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Copy of the collected events"""
        return self._events.copy()


@dataclass
class DomainEvent:
    """
    Base class for domain events

    Subclasses add their payload as keyword-only fields so that
    the base defaults never get in the way of required attributes.
    """
    event_id: UUID = field(default_factory=uuid4, kw_only=True)
    occurred_at: datetime | None = field(default=None, kw_only=True)
    aggregate_id: UUID | str | None = field(default=None, kw_only=True)

    def to_dict(self) -> dict:
        """Convert event to a JSON-friendly dictionary"""
        return {
            'event_id': str(self.event_id),
            'event_type': self.__class__.__name__,
            'occurred_at': self.occurred_at.isoformat() if self.occurred_at else None,
            'aggregate_id': str(self.aggregate_id) if self.aggregate_id else None,
        }
