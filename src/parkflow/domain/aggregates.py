# File: src/parkflow/domain/aggregates.py
"""
Aggregates for the Parking Facility
Following Domain-Driven Design (DDD) Aggregate Pattern

Aggregates:
1. ParkingLot - Root for allocation; owns ordered floors
2. ParkingFloor - Owns its spots and the per-size index of free spots
3. ParkingTicket - Root for billing; one park session from entry to exit

Key Concepts:
- Spot status is only changed through a floor's SpotPool, so the free-spot
  index and the spots' own status can never disagree
- Each SpotPool serialises its acquire/release with its own lock
- A ticket closes exactly once; the close is a compare-and-set under the
  ticket's lock
- Domain events are raised by the ticket for the application layer to publish
"""

from collections import deque
from typing import Deque, Dict, Iterable, List, Optional, Tuple, Any
from datetime import datetime
import logging
import threading
import uuid

from .exceptions import NoSpotAvailable, NotYetExited, TicketAlreadyClosed
from .interfaces import DisplayBoard
from .models import (
    Entity, ParkingSpot, Vehicle, Money, SpotSize,
    TicketStatus, PaymentMethod, DomainEvent,
    VehicleParkedEvent, VehicleLeftEvent, required_spot_size
)
from .strategies import (
    AllocationStrategy, LowestFloorFirstStrategy,
    PricingStrategy, FlatRatePricingStrategy
)


# ============================================================================
# BASE AGGREGATE ROOT
# ============================================================================

class AggregateRoot(Entity):
    """
    Base class for all aggregate roots
    Provides domain event collection and versioning
    """

    def __init__(self, id: Optional[str] = None):
        super().__init__(id)
        self._version: int = 1
        self._changes: List[DomainEvent] = []
        self._lock = threading.RLock()
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def version(self) -> int:
        """Get current aggregate version"""
        return self._version

    def _increment_version(self) -> None:
        """Increment version after state change"""
        self._version += 1

    def _add_domain_event(self, event: DomainEvent) -> None:
        """Add a domain event to the list of changes"""
        self._changes.append(event)
        self._logger.debug(f"Added domain event: {event.__class__.__name__}")

    def clear_events(self) -> List[DomainEvent]:
        """Clear and return all domain events"""
        with self._lock:
            events = self._changes.copy()
            self._changes.clear()
        return events

    @property
    def has_changes(self) -> bool:
        """Check if aggregate has pending domain events"""
        return len(self._changes) > 0


# ============================================================================
# SPOT POOL
# ============================================================================

class SpotPool:
    """
    Free spots of one size on one floor, in first-available order.

    acquire() and release() change the spot's status and the pool's
    membership under the same lock.
    """

    def __init__(self, size: SpotSize, spots: Iterable[ParkingSpot] = ()):
        self.size = size
        self._free: Deque[ParkingSpot] = deque()
        self._lock = threading.RLock()
        self._logger = logging.getLogger(self.__class__.__name__)

        for spot in spots:
            self._check_size(spot)
            if not spot.is_occupied:
                self._free.append(spot)

    def _check_size(self, spot: ParkingSpot) -> None:
        if spot.size != self.size:
            raise ValueError(
                f"Spot {spot.id} is {spot.size.value}, pool holds {self.size.value}"
            )

    def acquire(self, vehicle: Vehicle) -> Optional[ParkingSpot]:
        """
        Take the first free spot and park the vehicle in it
        Returns: the spot, or None when the pool is empty
        """
        with self._lock:
            if not self._free:
                return None

            spot = self._free[0]
            spot.park(vehicle)
            self._free.popleft()

        self._logger.debug(f"Acquired {spot.id} for {vehicle.registration_number}")
        return spot

    def release(self, spot: ParkingSpot) -> None:
        """
        Unpark the spot and return it to the back of the pool
        Raises: SpotAlreadyEmpty if the spot was not occupied
        """
        self._check_size(spot)
        with self._lock:
            spot.unpark()
            self._free.append(spot)

        self._logger.debug(f"Released {spot.id}")

    def available_count(self) -> int:
        with self._lock:
            return len(self._free)

    def free_spot_ids(self) -> List[str]:
        """Ids of free spots in the order they will be handed out"""
        with self._lock:
            return [spot.id for spot in self._free]

    def __repr__(self) -> str:
        return f"SpotPool({self.size.value}, free={self.available_count()})"


# ============================================================================
# PARKING FLOOR
# ============================================================================

class ParkingFloor(Entity):
    """
    Entity: One floor of the facility
    Exclusively owns a fixed set of spots and keeps one SpotPool per size.
    Pushes its availability to its display board after every assign/release.
    """

    def __init__(
        self,
        floor_number: int,
        spots: Iterable[ParkingSpot],
        display_board: Optional[DisplayBoard] = None,
        id: Optional[str] = None
    ):
        super().__init__(id)
        self.floor_number = floor_number
        self.display_board = display_board
        self._display_lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

        self._spots: Tuple[ParkingSpot, ...] = tuple(spots)
        self._spot_ids = {spot.id for spot in self._spots}
        if len(self._spot_ids) != len(self._spots):
            raise ValueError(f"Duplicate spot ids on floor {floor_number}")

        for spot in self._spots:
            spot.floor_number = floor_number

        self._pools: Dict[SpotSize, SpotPool] = {
            size: SpotPool(size, (s for s in self._spots if s.size == size))
            for size in SpotSize
        }

        self._logger.debug(f"Floor {floor_number} created with {len(self._spots)} spots")

    @property
    def spots(self) -> Tuple[ParkingSpot, ...]:
        return self._spots

    def owns(self, spot: ParkingSpot) -> bool:
        return spot.id in self._spot_ids

    def available_counts(self) -> Dict[SpotSize, int]:
        """Free spots on this floor by size"""
        return {size: pool.available_count() for size, pool in self._pools.items()}

    def total_counts(self) -> Dict[SpotSize, int]:
        """All spots on this floor by size, free or not"""
        counts = {size: 0 for size in SpotSize}
        for spot in self._spots:
            counts[spot.size] += 1
        return counts

    def try_assign(self, vehicle: Vehicle, size: SpotSize) -> Optional[ParkingSpot]:
        """
        Park the vehicle in a free spot of the given size on this floor
        Returns: the spot, or None if the floor has no free spot of that size
        """
        spot = self._pools[size].acquire(vehicle)
        if spot is not None:
            self.update_display_board()
        return spot

    def on_release(self, spot: ParkingSpot) -> None:
        """
        Return a spot to this floor's pool
        Raises: ValueError if the floor does not own the spot
        """
        if not self.owns(spot):
            raise ValueError(f"Spot {spot.id} does not belong to floor {self.floor_number}")

        self._pools[spot.size].release(spot)
        self.update_display_board()

    def update_display_board(self) -> None:
        # Read and push under one lock so the last push carries the live counts
        if self.display_board is not None:
            with self._display_lock:
                self.display_board.update(self.available_counts(), f"floor-{self.floor_number}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        available = self.available_counts()
        total = self.total_counts()
        return {
            "id": self.id,
            "floor_number": self.floor_number,
            "by_size": {
                size.value: {"total": total[size], "available": available[size]}
                for size in SpotSize
            },
        }

    def __str__(self) -> str:
        counts = ", ".join(f"{s.value}={n}" for s, n in self.available_counts().items())
        return f"Floor {self.floor_number} ({counts})"


# ============================================================================
# PARKING LOT AGGREGATE
# ============================================================================

class ParkingLot(Entity):
    """
    Root for allocation: a named lot with floors in ascending number order.
    Holds no state of its own beyond that composition.
    """

    def __init__(
        self,
        name: str,
        floors: Iterable[ParkingFloor],
        display_board: Optional[DisplayBoard] = None,
        allocation_strategy: Optional[AllocationStrategy] = None,
        id: Optional[str] = None
    ):
        super().__init__(id)
        self.name = name
        self.display_board = display_board
        self.allocation_strategy = allocation_strategy or LowestFloorFirstStrategy()
        self._display_lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

        self._floors: Tuple[ParkingFloor, ...] = tuple(
            sorted(floors, key=lambda floor: floor.floor_number)
        )
        self._validate_invariants()

        self._spot_floors: Dict[str, ParkingFloor] = {
            spot.id: floor for floor in self._floors for spot in floor.spots
        }

        self._logger.info(
            f"Created ParkingLot: {self.name} with {len(self._floors)} floors "
            f"and {self.total_spots} spots"
        )

    def _validate_invariants(self) -> None:
        """Validate aggregate invariants"""
        if not self.name or not self.name.strip():
            raise ValueError("Parking lot name cannot be empty")

        if not self._floors:
            raise ValueError("A parking lot needs at least one floor")

        numbers = [floor.floor_number for floor in self._floors]
        if len(set(numbers)) != len(numbers):
            raise ValueError(f"Duplicate floor numbers: {numbers}")

        spot_ids = [spot.id for floor in self._floors for spot in floor.spots]
        if len(set(spot_ids)) != len(spot_ids):
            raise ValueError("Spot ids must be unique across floors")

    # ========================================================================
    # PUBLIC BUSINESS METHODS
    # ========================================================================

    def assign_spot(self, vehicle: Vehicle) -> Tuple[ParkingSpot, ParkingFloor]:
        """
        Park a vehicle on the first floor with a free spot of its size
        Returns: (spot, floor)
        Raises: UnknownVehicleType, NoSpotAvailable
        """
        size = required_spot_size(vehicle)
        result = self.allocation_strategy.allocate_spot(self._floors, vehicle, size)

        if result is None:
            self._logger.warning(
                f"No {size.value} spot available for {vehicle.registration_number}"
            )
            raise NoSpotAvailable(size)

        spot, floor = result
        self._logger.info(
            f"Assigned spot {spot.id} on floor {floor.floor_number} "
            f"to {vehicle.registration_number}"
        )
        return spot, floor

    def release_spot(self, spot: ParkingSpot) -> ParkingFloor:
        """
        Return a spot to the pool of the floor that owns it
        Returns: the owning floor
        """
        floor = self._spot_floors.get(spot.id)
        if floor is None:
            raise ValueError(f"Spot {spot.id} does not belong to {self.name}")

        floor.on_release(spot)
        self._logger.info(f"Released spot {spot.id} on floor {floor.floor_number}")
        return floor

    def update_display_board(self) -> None:
        if self.display_board is not None:
            with self._display_lock:
                self.display_board.update(self.overall_availability(), "lot")

    # ========================================================================
    # QUERY METHODS (Read-only)
    # ========================================================================

    @property
    def floors(self) -> Tuple[ParkingFloor, ...]:
        return self._floors

    def get_floor(self, floor_number: int) -> Optional[ParkingFloor]:
        for floor in self._floors:
            if floor.floor_number == floor_number:
                return floor
        return None

    @property
    def total_spots(self) -> int:
        return len(self._spot_floors)

    def overall_availability(self) -> Dict[SpotSize, int]:
        """Free spots in the whole lot by size, summed over floors"""
        total = {size: 0 for size in SpotSize}
        for floor in self._floors:
            for size, count in floor.available_counts().items():
                total[size] += count
        return total

    def floor_availability(self) -> Dict[int, Dict[SpotSize, int]]:
        return {floor.floor_number: floor.available_counts() for floor in self._floors}

    def status_report(self) -> Dict[str, Any]:
        """Get comprehensive status report"""
        available = self.overall_availability()
        free = sum(available.values())
        return {
            "parking_lot_id": self.id,
            "name": self.name,
            "total_spots": self.total_spots,
            "available_spots": free,
            "occupancy_rate": (
                (self.total_spots - free) / self.total_spots * 100.0
                if self.total_spots else 0.0
            ),
            "availability": {size.value: count for size, count in available.items()},
            "floors": [floor.to_dict() for floor in self._floors],
            "allocation_strategy": self.allocation_strategy.get_strategy_name(),
        }

    def __str__(self) -> str:
        free = sum(self.overall_availability().values())
        return f"ParkingLot: {self.name} ({free}/{self.total_spots} free)"


# ============================================================================
# PARKING TICKET AGGREGATE (for billing and audit)
# ============================================================================

class ParkingTicket(AggregateRoot):
    """
    Aggregate Root: Parking Ticket
    Tracks one park session from check-in to check-out.

    Created ACTIVE at check-in, closed exactly once at check-out (exit time
    and fee frozen), then marked PAID. Tickets are never deleted.
    """

    def __init__(
        self,
        vehicle: Vehicle,
        spot: ParkingSpot,
        floor_number: int,
        entry_time: datetime,
        parking_lot_id: Optional[str] = None,
        pricing_strategy: Optional[PricingStrategy] = None,
        id: Optional[str] = None
    ):
        super().__init__(id or self.generate_ticket_id(entry_time))
        self.vehicle = vehicle
        self.spot = spot
        self.floor_number = floor_number
        self.entry_time = entry_time
        self.parking_lot_id = parking_lot_id
        self.pricing_strategy = pricing_strategy or FlatRatePricingStrategy()

        # Session state
        self.exit_time: Optional[datetime] = None
        self.status = TicketStatus.ACTIVE
        self.payment_method: Optional[PaymentMethod] = None
        self._fee: Optional[Money] = None
        self._duration_minutes: Optional[int] = None

        self._add_domain_event(VehicleParkedEvent(
            parking_lot_id=parking_lot_id,
            ticket_id=self.id,
            spot_id=spot.id,
            floor_number=floor_number,
            registration_number=vehicle.registration_number,
            spot_size=spot.size,
            timestamp=entry_time
        ))
        self._logger.info(
            f"Issued ticket {self.id} for {vehicle.registration_number} at {entry_time}"
        )

    @staticmethod
    def generate_ticket_id(issued_at: Optional[datetime] = None) -> str:
        """Generate a unique ticket number"""
        timestamp = (issued_at or datetime.now()).strftime("%Y%m%d%H%M%S")
        unique_id = uuid.uuid4().hex[:8].upper()
        return f"TKT-{timestamp}-{unique_id}"

    # ========================================================================
    # SESSION OPERATIONS
    # ========================================================================

    def close(self, exit_time: datetime) -> 'ParkingTicket':
        """
        Close the ticket: freeze the exit time and the fee
        Raises: TicketAlreadyClosed if the ticket was closed before
        """
        with self._lock:
            if self.exit_time is not None:
                raise TicketAlreadyClosed(self.id)

            if exit_time < self.entry_time:
                raise ValueError("Exit time cannot be before entry time")

            fee = self.pricing_strategy.calculate_parking_fee(
                self.spot.size, self.entry_time, exit_time
            )

            self.exit_time = exit_time
            self._fee = fee
            self._duration_minutes = self.pricing_strategy.billable_minutes(
                self.entry_time, exit_time
            )
            self.status = TicketStatus.COMPLETED
            self._increment_version()

            self._add_domain_event(VehicleLeftEvent(
                parking_lot_id=self.parking_lot_id,
                ticket_id=self.id,
                spot_id=self.spot.id,
                floor_number=self.floor_number,
                registration_number=self.vehicle.registration_number,
                entry_time=self.entry_time,
                exit_time=exit_time,
                duration_minutes=self._duration_minutes,
                fee=fee,
                timestamp=exit_time
            ))

        self._logger.info(
            f"Closed ticket {self.id} after {self._duration_minutes} min. "
            f"Fee: {fee.format()}"
        )
        return self

    def compute_fee(self) -> Money:
        """
        Get the fee frozen at close
        Raises: NotYetExited if the ticket is still open
        """
        with self._lock:
            if self._fee is None:
                raise NotYetExited(self.id)
            return self._fee

    def mark_paid(self, payment_method: PaymentMethod) -> None:
        """Mark a closed ticket as paid"""
        with self._lock:
            if self.status != TicketStatus.COMPLETED:
                raise ValueError(f"Cannot pay for ticket with status {self.status.value}")

            self.payment_method = payment_method
            self.status = TicketStatus.PAID
            self._increment_version()

        self._logger.info(f"Ticket {self.id} paid via {payment_method.value}")

    # ========================================================================
    # QUERY METHODS
    # ========================================================================

    @property
    def is_closed(self) -> bool:
        return self.exit_time is not None

    @property
    def fee(self) -> Optional[Money]:
        return self._fee

    @property
    def duration_minutes(self) -> Optional[int]:
        return self._duration_minutes

    def to_dict(self) -> Dict[str, Any]:
        """Convert ticket to dictionary"""
        return {
            "id": self.id,
            "parking_lot_id": self.parking_lot_id,
            "vehicle": self.vehicle.to_dict(),
            "spot_id": self.spot.id,
            "spot_size": self.spot.size.value,
            "floor_number": self.floor_number,
            "entry_time": self.entry_time.isoformat(),
            "exit_time": self.exit_time.isoformat() if self.exit_time else None,
            "duration_minutes": self._duration_minutes,
            "status": self.status.value,
            "fee": self._fee.to_dict() if self._fee else None,
            "payment_method": self.payment_method.value if self.payment_method else None,
            "version": self.version,
        }

    def __str__(self) -> str:
        return (
            f"Ticket {self.id}: {self.vehicle.registration_number} "
            f"in {self.spot.id} - {self.status.value}"
        )
