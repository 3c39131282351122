# File: src/parkflow/infrastructure/factories.py
"""
Factory Pattern Implementation for the Parking Facility

Builds the object graph of a facility from configuration:
floors and their spots, the lot, the pricing strategy and the service.
"""

from typing import Optional
import logging

from ..config import AppConfig, FacilityConfig, FloorConfig
from ..domain.aggregates import ParkingFloor, ParkingLot
from ..domain.interfaces import Clock, DisplayBoard, PaymentProcessor
from ..domain.models import generate_spots
from ..domain.strategies import AllocationStrategy, FlatRatePricingStrategy
from ..application.parking_service import ParkingService
from .display import LoggingDisplayBoard
from .messaging import AuditLogHandler, EventBus


class FacilityFactory:
    """Factory for creating a configured facility"""

    def __init__(self, display_board: Optional[DisplayBoard] = None):
        self.display_board = display_board or LoggingDisplayBoard()
        self.logger = logging.getLogger(self.__class__.__name__)

    def create_floor(self, floor_config: FloorConfig) -> ParkingFloor:
        spots = generate_spots(
            floor_config.number,
            small=floor_config.small,
            medium=floor_config.medium,
            large=floor_config.large
        )
        return ParkingFloor(floor_config.number, spots, display_board=self.display_board)

    def create_parking_lot(
        self,
        facility: FacilityConfig,
        allocation_strategy: Optional[AllocationStrategy] = None
    ) -> ParkingLot:
        floors = [self.create_floor(floor) for floor in facility.floors]
        lot = ParkingLot(
            facility.name,
            floors,
            display_board=self.display_board,
            allocation_strategy=allocation_strategy
        )
        self.logger.info(f"Built {lot}")
        return lot

    def create_pricing_strategy(self, config: AppConfig) -> FlatRatePricingStrategy:
        return FlatRatePricingStrategy(
            base_rates=config.rates.as_dict(),
            currency=config.currency
        )

    def create_service(
        self,
        config: AppConfig,
        clock: Optional[Clock] = None,
        payment_processor: Optional[PaymentProcessor] = None
    ) -> ParkingService:
        """Wire a ParkingService with an audited event bus"""
        event_bus = EventBus()
        audit = AuditLogHandler()
        event_bus.subscribe("vehicle.parked", audit)
        event_bus.subscribe("vehicle.left", audit)

        return ParkingService(
            self.create_parking_lot(config.facility),
            clock=clock,
            payment_processor=payment_processor,
            pricing_strategy=self.create_pricing_strategy(config),
            event_bus=event_bus
        )
