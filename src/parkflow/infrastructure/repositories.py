# File: src/parkflow/infrastructure/repositories.py
"""
Repository Pattern Implementation for the Parking Facility

Tickets live only in memory for the lifetime of the process. They are never
deleted: closed and paid tickets stay queryable.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional
import logging
import threading

from ..domain.aggregates import ParkingTicket
from ..domain.exceptions import TicketNotFound
from ..domain.models import TicketStatus


# ============================================================================
# REPOSITORY INTERFACES
# ============================================================================

class TicketRepository(ABC):
    """Ticket registry interface"""

    @abstractmethod
    def add(self, ticket: ParkingTicket) -> ParkingTicket:
        """Register a newly issued ticket"""
        pass

    @abstractmethod
    def get(self, ticket_id: str) -> Optional[ParkingTicket]:
        """Get a ticket by ID"""
        pass

    @abstractmethod
    def find_by_status(self, status: TicketStatus) -> List[ParkingTicket]:
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    def require(self, ticket_id: str) -> ParkingTicket:
        """
        Get a ticket that must exist
        Raises: TicketNotFound
        """
        ticket = self.get(ticket_id)
        if ticket is None:
            raise TicketNotFound(ticket_id)
        return ticket


# ============================================================================
# IN-MEMORY IMPLEMENTATION
# ============================================================================

class InMemoryTicketRepository(TicketRepository):
    """In-memory ticket registry, safe to share between threads"""

    def __init__(self):
        self._storage: Dict[str, ParkingTicket] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

    def add(self, ticket: ParkingTicket) -> ParkingTicket:
        with self._lock:
            if ticket.id in self._storage:
                raise ValueError(f"Ticket {ticket.id} already registered")
            self._storage[ticket.id] = ticket
        self._logger.debug(f"Added ticket {ticket.id}")
        return ticket

    def get(self, ticket_id: str) -> Optional[ParkingTicket]:
        with self._lock:
            return self._storage.get(ticket_id)

    def find_by_status(self, status: TicketStatus) -> List[ParkingTicket]:
        with self._lock:
            return [t for t in self._storage.values() if t.status == status]

    def count(self) -> int:
        with self._lock:
            return len(self._storage)
