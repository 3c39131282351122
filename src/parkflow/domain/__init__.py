"""Domain layer: vehicles, spots, floors, the lot and tickets"""

from .aggregates import ParkingFloor, ParkingLot, ParkingTicket, SpotPool
from .exceptions import (
    ParkingError, NoSpotAvailable, UnknownVehicleType,
    SpotAlreadyOccupied, SpotAlreadyEmpty,
    TicketAlreadyClosed, NotYetExited, TicketNotFound
)
from .models import (
    Bus, Car, CarType, Money, Motorcycle, ParkingSpot, PaymentMethod,
    Receipt, SpotSize, SpotStatus, TicketStatus, Vehicle, VehicleFactory,
    VehicleKind, generate_spots, required_spot_size
)
from .strategies import FlatRatePricingStrategy, LowestFloorFirstStrategy
