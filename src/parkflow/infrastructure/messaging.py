# File: src/parkflow/infrastructure/messaging.py
"""
Messaging Infrastructure for the Parking Facility

In-process publish/subscribe for the domain events raised by tickets:
- vehicle.parked  (check-in)
- vehicle.left    (check-out)

Handlers run synchronously in the publishing thread. A failing handler is
logged and does not affect other handlers or the operation that raised the
event.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Iterable
import logging
import threading

from ..domain.models import DomainEvent


# ============================================================================
# EVENT HANDLERS
# ============================================================================

class EventHandler(ABC):
    """Abstract base class for event handlers"""

    @abstractmethod
    def handle(self, event: DomainEvent) -> None:
        """Handle a domain event"""
        pass

    def can_handle(self, event: DomainEvent) -> bool:
        """Check if this handler can handle the event"""
        return True


class AuditLogHandler(EventHandler):
    """Writes every event to the audit log and keeps the last few in memory"""

    def __init__(self, keep: int = 1000):
        self.keep = keep
        self._events: List[DomainEvent] = []
        self._lock = threading.Lock()
        self._logger = logging.getLogger("audit")

    def handle(self, event: DomainEvent) -> None:
        with self._lock:
            self._events.append(event)
            if len(self._events) > self.keep:
                del self._events[0]
        self._logger.info(f"{event.event_type}: {event.to_dict()['data']}")

    @property
    def events(self) -> List[DomainEvent]:
        with self._lock:
            return list(self._events)


# ============================================================================
# EVENT BUS (In-memory)
# ============================================================================

class EventBus:
    """
    In-memory event bus for intra-process event publishing

    Implements publish/subscribe pattern within the same process.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[EventHandler]] = {}
        self._lock = threading.RLock()
        self._logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe to events of a specific type"""
        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)
                self._logger.debug(f"Subscribed {handler.__class__.__name__} to {event_type}")

    def publish(self, event: DomainEvent) -> None:
        """Publish an event to all subscribers"""
        self._logger.debug(f"Publishing event: {event.event_type} (ID: {event.event_id})")

        with self._lock:
            handlers = list(self._subscribers.get(event.event_type, []))

        for handler in handlers:
            if handler.can_handle(event):
                try:
                    handler.handle(event)
                except Exception as e:
                    self._logger.error(
                        f"Error handling event {event.event_type} "
                        f"with {handler.__class__.__name__}: {e}"
                    )

    def publish_all(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            self.publish(event)

    def subscriber_count(self, event_type: str) -> int:
        with self._lock:
            return len(self._subscribers.get(event_type, []))
