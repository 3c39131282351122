# File: src/parkflow/domain/models.py
"""
Domain Models for the Parking Facility
Following Domain-Driven Design (DDD) principles with rich domain models

This module contains:
1. Value Objects: Money, vehicles and receipts (immutable, no identity)
2. Enums: Size classes, statuses and payment methods
3. Entities: ParkingSpot, with identity and an EMPTY/OCCUPIED lifecycle
4. Domain Events: Events raised on check-in and check-out

Vehicles are a tagged variant: every vehicle class carries a ``kind`` tag and
the size class it needs is looked up from that tag, never from its type.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from typing import Optional, List, Dict, Any, ClassVar
from datetime import datetime
from decimal import Decimal
import uuid
from enum import Enum

from .exceptions import SpotAlreadyOccupied, SpotAlreadyEmpty, UnknownVehicleType


# ============================================================================
# DOMAIN PRIMITIVES / VALUE OBJECTS
# ============================================================================

@dataclass(frozen=True)  # Value objects are immutable
class Money:
    """
    Value Object: Monetary amount with currency
    Provides arithmetic operations with validation
    """
    amount: Decimal
    currency: str = "USD"

    def __post_init__(self):
        """Validate money amount"""
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

        if self.amount < Decimal('0'):
            raise ValueError("Money amount cannot be negative")

        if len(self.currency) != 3:
            raise ValueError(f"Currency must be 3-letter code: {self.currency}")

    def __add__(self, other: 'Money') -> 'Money':
        """Add two money amounts (same currency only)"""
        if self.currency != other.currency:
            raise ValueError(f"Cannot add {self.currency} to {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def format(self) -> str:
        """Format money for display"""
        return f"{self.amount:.2f} {self.currency}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "amount": float(self.amount),
            "currency": self.currency
        }


# ============================================================================
# ENUMS FOR DOMAIN TYPES
# ============================================================================

class SpotSize(Enum):
    """
    Size class of a parking spot
    The unit of spot/vehicle compatibility
    """
    SMALL = "SMALL"
    MEDIUM = "MEDIUM"
    LARGE = "LARGE"

    @property
    def code(self) -> str:
        """Single-letter code used in spot location codes"""
        return self.value[0]

    def __str__(self) -> str:
        return self.value.title()


class SpotStatus(Enum):
    EMPTY = "EMPTY"
    OCCUPIED = "OCCUPIED"


class VehicleKind(Enum):
    """
    Tag carried by every vehicle variant
    Each kind needs exactly one spot size
    """
    MOTORCYCLE = "motorcycle"
    CAR = "car"
    BUS = "bus"

    @property
    def required_spot_size(self) -> SpotSize:
        """Get the spot size this kind of vehicle parks in"""
        return _REQUIRED_SPOT_SIZES[self]

    def __str__(self) -> str:
        return self.value.title()


_REQUIRED_SPOT_SIZES = {
    VehicleKind.MOTORCYCLE: SpotSize.SMALL,
    VehicleKind.CAR: SpotSize.MEDIUM,
    VehicleKind.BUS: SpotSize.LARGE,
}


class CarType(Enum):
    HATCHBACK = "HATCHBACK"
    SUV = "SUV"
    MPV = "MPV"


class TicketStatus(Enum):
    """
    Lifecycle of a parking ticket
    ACTIVE -> COMPLETED (exit time and fee frozen) -> PAID
    """
    ACTIVE = "active"
    COMPLETED = "completed"
    PAID = "paid"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class PaymentMethod(Enum):
    """Payment methods accepted at the exit panel"""
    CASH = "CASH"
    CARD = "CARD"
    FAST_TAG = "FAST_TAG"

    @classmethod
    def parse(cls, value) -> 'PaymentMethod':
        """Accept an enum member or a case-insensitive name"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unsupported payment method: {value}")


# ============================================================================
# VEHICLES (tagged variant)
# ============================================================================

def _check_positive_int(value: Any, name: str) -> None:
    """Optional variant attributes must be positive whole numbers when given"""
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be a whole number, got {value!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive")


@dataclass(frozen=True)
class Vehicle:
    """
    Value Object: Base for every vehicle variant
    Identity attributes only; subclasses set the ``kind`` tag
    """
    registration_number: str
    color: str

    kind: ClassVar[Optional[VehicleKind]] = None

    def __post_init__(self):
        """Validate and normalise identity attributes"""
        if not self.registration_number or not self.registration_number.strip():
            raise ValueError("Registration number cannot be empty")

        # Remove whitespace and convert to uppercase
        object.__setattr__(
            self, 'registration_number', self.registration_number.strip().upper()
        )

        if not self.color or not self.color.strip():
            raise ValueError("Vehicle color cannot be empty")

    @property
    def description(self) -> str:
        kind = self.kind.value if self.kind else "vehicle"
        return f"{self.color} {kind} [{self.registration_number}]"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "vehicle_type": self.kind.value if self.kind else None,
            "registration_number": self.registration_number,
            "color": self.color,
        }

    def __str__(self) -> str:
        return self.description


@dataclass(frozen=True)
class Motorcycle(Vehicle):
    engine_size: Optional[int] = None

    kind: ClassVar[Optional[VehicleKind]] = VehicleKind.MOTORCYCLE

    def __post_init__(self):
        super().__post_init__()
        _check_positive_int(self.engine_size, "Engine size")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["engine_size"] = self.engine_size
        return data


@dataclass(frozen=True)
class Car(Vehicle):
    fast_tag: Optional[str] = None
    model: Optional[str] = None
    fuel_type: Optional[str] = None
    car_type: CarType = CarType.HATCHBACK

    kind: ClassVar[Optional[VehicleKind]] = VehicleKind.CAR

    def __post_init__(self):
        super().__post_init__()
        if not isinstance(self.car_type, CarType):
            try:
                object.__setattr__(self, 'car_type', CarType(str(self.car_type).upper()))
            except ValueError:
                raise ValueError(f"Invalid car type: {self.car_type}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "fast_tag": self.fast_tag,
            "model": self.model,
            "fuel_type": self.fuel_type,
            "car_type": self.car_type.value,
        })
        return data


@dataclass(frozen=True)
class Bus(Vehicle):
    capacity: Optional[int] = None

    kind: ClassVar[Optional[VehicleKind]] = VehicleKind.BUS

    def __post_init__(self):
        super().__post_init__()
        _check_positive_int(self.capacity, "Bus capacity")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["capacity"] = self.capacity
        return data


def required_spot_size(vehicle: Any) -> SpotSize:
    """
    Map a vehicle to the spot size it needs
    Raises: UnknownVehicleType if the vehicle carries no known kind tag
    """
    kind = getattr(vehicle, 'kind', None)
    if not isinstance(kind, VehicleKind):
        raise UnknownVehicleType(type(vehicle).__name__)
    return kind.required_spot_size


# ============================================================================
# DOMAIN ENTITIES
# ============================================================================

class Entity:
    """
    Base class for all domain entities
    Provides common functionality for entities with identity
    """

    def __init__(self, id: Optional[str] = None):
        self._id = id or str(uuid.uuid4())

    @property
    def id(self) -> str:
        """Get entity ID"""
        return self._id

    def __eq__(self, other: object) -> bool:
        """Entities are equal if they have the same ID and type"""
        if not isinstance(other, Entity):
            return False
        return self.id == other.id and type(self) == type(other)

    def __hash__(self) -> int:
        """Hash based on ID and type"""
        return hash((self.id, type(self).__name__))

    def __repr__(self) -> str:
        """Representation for debugging"""
        return f"{type(self).__name__}(id={self.id})"


class ParkingSpot(Entity):
    """
    Entity: Individual parking spot with a fixed size
    Holds a reference to the parked vehicle while occupied, never owns it.

    Invariant: status is OCCUPIED exactly when a vehicle is referenced.
    Spots are mutated only through their floor's SpotPool.
    """

    def __init__(
        self,
        id: str,
        size: SpotSize,
        floor_number: int = 1
    ):
        super().__init__(id)
        self.size = size
        self.floor_number = floor_number
        self.status = SpotStatus.EMPTY
        self.vehicle: Optional[Vehicle] = None

    @property
    def is_occupied(self) -> bool:
        return self.status == SpotStatus.OCCUPIED

    def park(self, vehicle: Vehicle) -> None:
        """
        Park a vehicle in this spot
        Raises: SpotAlreadyOccupied if the spot is not empty
        """
        if self.status != SpotStatus.EMPTY:
            raise SpotAlreadyOccupied(f"Spot {self.id} is already occupied")

        self.vehicle = vehicle
        self.status = SpotStatus.OCCUPIED

    def unpark(self) -> Vehicle:
        """
        Remove the parked vehicle
        Returns: the vehicle that was parked
        Raises: SpotAlreadyEmpty if nothing is parked
        """
        if self.status != SpotStatus.OCCUPIED:
            raise SpotAlreadyEmpty(f"Spot {self.id} is already empty")

        vehicle = self.vehicle
        self.vehicle = None
        self.status = SpotStatus.EMPTY
        return vehicle

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "id": self.id,
            "size": self.size.value,
            "floor_number": self.floor_number,
            "status": self.status.value,
            "vehicle": self.vehicle.to_dict() if self.vehicle else None,
        }

    def __str__(self) -> str:
        return f"Spot {self.id} ({self.size}) - {self.status.value}"


@dataclass(frozen=True)
class Receipt:
    """Value Object: Outcome of a completed check-out"""
    ticket_id: str
    fee: Money
    status: PaymentStatus
    payment_method: PaymentMethod
    entry_time: datetime
    exit_time: datetime
    duration_minutes: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticket_id": self.ticket_id,
            "fee": float(self.fee.amount),
            "currency": self.fee.currency,
            "status": self.status.value,
            "payment_method": self.payment_method.value,
            "entry_time": self.entry_time.isoformat(),
            "exit_time": self.exit_time.isoformat(),
            "duration_minutes": self.duration_minutes,
        }


# ============================================================================
# DOMAIN SERVICES / FACTORIES
# ============================================================================

class VehicleFactory:
    """
    Factory for creating vehicle variants from plain parameters
    Used by the application layer to turn requests into vehicles
    """

    _VARIANTS = {
        VehicleKind.MOTORCYCLE: Motorcycle,
        VehicleKind.CAR: Car,
        VehicleKind.BUS: Bus,
    }

    @staticmethod
    def create_vehicle(
        vehicle_type: str,
        registration_number: str,
        color: str,
        **attributes: Any
    ) -> Vehicle:
        """
        Create a vehicle from a type name and its attributes
        Raises: UnknownVehicleType for an unmapped type name
        """
        try:
            kind = VehicleKind(str(vehicle_type).strip().lower())
        except ValueError:
            raise UnknownVehicleType(vehicle_type)

        variant = VehicleFactory._VARIANTS[kind]
        allowed = {f.name for f in fields(variant)} - {"registration_number", "color"}
        unexpected = set(attributes) - allowed
        if unexpected:
            raise ValueError(
                f"Unexpected attributes for {kind.value}: {', '.join(sorted(unexpected))}"
            )

        return variant(
            registration_number=registration_number,
            color=color,
            **attributes
        )


# ============================================================================
# DOMAIN EVENTS
# ============================================================================

class DomainEvent(ABC):
    """
    Base class for all domain events
    Events represent something that happened in the domain
    """

    event_type: ClassVar[str] = "domain.event"

    def __init__(self, timestamp: Optional[datetime] = None):
        self.event_id = str(uuid.uuid4())
        self.timestamp = timestamp or datetime.now()
        self.version = "1.0"

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization"""
        pass

    def __str__(self) -> str:
        return f"{self.__class__.__name__} at {self.timestamp}"


class VehicleParkedEvent(DomainEvent):
    """Event raised when a vehicle is checked in"""

    event_type: ClassVar[str] = "vehicle.parked"

    def __init__(
        self,
        parking_lot_id: str,
        ticket_id: str,
        spot_id: str,
        floor_number: int,
        registration_number: str,
        spot_size: SpotSize,
        timestamp: Optional[datetime] = None
    ):
        super().__init__(timestamp)
        self.parking_lot_id = parking_lot_id
        self.ticket_id = ticket_id
        self.spot_id = spot_id
        self.floor_number = floor_number
        self.registration_number = registration_number
        self.spot_size = spot_size

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
            "data": {
                "parking_lot_id": self.parking_lot_id,
                "ticket_id": self.ticket_id,
                "spot_id": self.spot_id,
                "floor_number": self.floor_number,
                "registration_number": self.registration_number,
                "spot_size": self.spot_size.value,
            }
        }


class VehicleLeftEvent(DomainEvent):
    """Event raised when a vehicle is checked out and its spot released"""

    event_type: ClassVar[str] = "vehicle.left"

    def __init__(
        self,
        parking_lot_id: str,
        ticket_id: str,
        spot_id: str,
        floor_number: int,
        registration_number: str,
        entry_time: datetime,
        exit_time: datetime,
        duration_minutes: int,
        fee: Money,
        timestamp: Optional[datetime] = None
    ):
        super().__init__(timestamp)
        self.parking_lot_id = parking_lot_id
        self.ticket_id = ticket_id
        self.spot_id = spot_id
        self.floor_number = floor_number
        self.registration_number = registration_number
        self.entry_time = entry_time
        self.exit_time = exit_time
        self.duration_minutes = duration_minutes
        self.fee = fee

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
            "data": {
                "parking_lot_id": self.parking_lot_id,
                "ticket_id": self.ticket_id,
                "spot_id": self.spot_id,
                "floor_number": self.floor_number,
                "registration_number": self.registration_number,
                "entry_time": self.entry_time.isoformat(),
                "exit_time": self.exit_time.isoformat(),
                "duration_minutes": self.duration_minutes,
                "fee_amount": float(self.fee.amount),
                "fee_currency": self.fee.currency,
            }
        }


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def spot_location_code(floor_number: int, size: SpotSize, number: int) -> str:
    """Build a spot id such as L01M003"""
    return f"L{floor_number:02d}{size.code}{number:03d}"


def generate_spots(
    floor_number: int,
    small: int = 0,
    medium: int = 0,
    large: int = 0
) -> List[ParkingSpot]:
    """
    Generate the spots of one floor with sequential numbers
    Small spots come first, then medium, then large
    """
    if floor_number < 0:
        raise ValueError("Floor number cannot be negative")

    spots = []
    number = 1
    for size, count in ((SpotSize.SMALL, small), (SpotSize.MEDIUM, medium), (SpotSize.LARGE, large)):
        if count < 0:
            raise ValueError(f"Spot count for {size.value} cannot be negative")
        for _ in range(count):
            spots.append(ParkingSpot(
                id=spot_location_code(floor_number, size, number),
                size=size,
                floor_number=floor_number
            ))
            number += 1

    return spots
