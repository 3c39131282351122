# File: src/parkflow/application/parking_service.py
"""
Parking Facility Application Service

Orchestrates the use cases of the facility for the CLI and HTTP layer:
1. Check-in: build the vehicle, issue a ticket through the entry panel
2. Check-out: look the ticket up, settle it through the exit panel
3. Queries: ticket lookup and availability

Domain errors propagate unchanged to the caller. Domain events collected by
tickets are published on the event bus after each successful operation.
"""

from typing import Optional, Union
import logging

from ..domain.aggregates import ParkingLot, ParkingTicket
from ..domain.interfaces import Clock, PaymentProcessor
from ..domain.models import PaymentMethod, Receipt, TicketStatus, Vehicle, VehicleFactory
from ..domain.strategies import PricingStrategy
from ..infrastructure.clock import SystemClock
from ..infrastructure.messaging import EventBus
from ..infrastructure.payments import LoggingPaymentProcessor
from ..infrastructure.repositories import InMemoryTicketRepository, TicketRepository
from .dtos import (
    CheckInRequest, CheckOutRequest, TicketResponse,
    ReceiptResponse, AvailabilityResponse
)
from .panels import EntryPanel, ExitPanel


class ParkingService:
    """
    Application service for the parking facility
    Dependencies are injected; defaults suit a single in-process facility
    """

    def __init__(
        self,
        parking_lot: ParkingLot,
        clock: Optional[Clock] = None,
        payment_processor: Optional[PaymentProcessor] = None,
        pricing_strategy: Optional[PricingStrategy] = None,
        repository: Optional[TicketRepository] = None,
        event_bus: Optional[EventBus] = None
    ):
        self.parking_lot = parking_lot
        self.clock = clock or SystemClock()
        self.payment_processor = payment_processor or LoggingPaymentProcessor()
        self.repository = repository or InMemoryTicketRepository()
        self.event_bus = event_bus or EventBus()

        self.entry_panel = EntryPanel(parking_lot, self.clock, pricing_strategy)
        self.exit_panel = ExitPanel(parking_lot, self.clock, self.payment_processor)

        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.info(f"ParkingService ready for {parking_lot.name}")

    # ========================================================================
    # DOMAIN-LEVEL USE CASES
    # ========================================================================

    def park_vehicle(self, vehicle: Vehicle) -> ParkingTicket:
        """Check a vehicle in and register its ticket"""
        ticket = self.entry_panel.check_in(vehicle)
        try:
            self.repository.add(ticket)
        except Exception:
            # An unregistered ticket must not keep its spot
            self.parking_lot.release_spot(ticket.spot)
            self.parking_lot.update_display_board()
            raise
        self.event_bus.publish_all(ticket.clear_events())
        return ticket

    def exit_vehicle(
        self,
        ticket_id: str,
        payment_method: Union[PaymentMethod, str] = PaymentMethod.CASH
    ) -> Receipt:
        """
        Check out the vehicle holding a ticket
        Raises: TicketNotFound, TicketAlreadyClosed
        """
        ticket = self.repository.require(ticket_id)
        receipt = self.exit_panel.check_out(ticket, payment_method)
        self.event_bus.publish_all(ticket.clear_events())
        return receipt

    # ========================================================================
    # DTO-LEVEL USE CASES
    # ========================================================================

    def check_in(self, request: CheckInRequest) -> TicketResponse:
        """
        Handle a check-in request
        Raises: UnknownVehicleType, NoSpotAvailable, ValueError
        """
        vehicle = VehicleFactory.create_vehicle(
            request.vehicle_type,
            request.registration_number,
            request.color,
            **request.attrs
        )
        return TicketResponse.from_ticket(self.park_vehicle(vehicle))

    def check_out(self, request: CheckOutRequest) -> ReceiptResponse:
        """Handle a check-out request"""
        receipt = self.exit_vehicle(request.ticket_id, request.payment_method)
        return ReceiptResponse.from_receipt(receipt)

    def get_ticket(self, ticket_id: str) -> TicketResponse:
        return TicketResponse.from_ticket(self.repository.require(ticket_id))

    def availability(self) -> AvailabilityResponse:
        active = len(self.repository.find_by_status(TicketStatus.ACTIVE))
        return AvailabilityResponse.from_lot(self.parking_lot, active_tickets=active)
