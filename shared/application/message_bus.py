"""
Message Bus

Routes domain events raised by the engine to whoever subscribed to them
(notification dispatch, analytics, cache invalidation). Subscribers live
outside the engine and register at start-up.
"""

from typing import Callable, Dict, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    """
    Event bus with any number of handlers per event type

    Handlers registered for a base class also receive its subclasses.
    """

    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        """Subscribe `handler` to events of `event_type`"""
        self._event_handlers.setdefault(event_type, []).append(handler)
        logger.debug("Registered handler %s for %s", _name(handler), event_type.__name__)

    def unregister_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        handlers = self._event_handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def handlers_for(self, event: DomainEvent) -> List[EventHandler]:
        matched: List[EventHandler] = []
        for event_type in type(event).__mro__:
            matched.extend(self._event_handlers.get(event_type, []))
        return matched

    def publish_events(self, events: List[DomainEvent]):
        """
        Deliver events to their handlers

        A failing handler is logged and does not stop the others: the
        booking is already committed by the time events are published.
        """
        for event in events:
            event_name = type(event).__name__
            handlers = self.handlers_for(event)

            if not handlers:
                logger.debug("No handlers registered for %s", event_name)
                continue

            logger.info("Publishing %s (id %s)", event_name, event.event_id)
            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    logger.exception("Handler %s failed for %s", _name(handler), event_name)


def _name(handler: EventHandler) -> str:
    return getattr(handler, '__qualname__', repr(handler))


# Global message bus instance
message_bus = MessageBus()
