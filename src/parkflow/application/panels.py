# File: src/parkflow/application/panels.py
"""
Entry and exit panels of the facility.

EntryPanel: classify the vehicle, allocate a spot, issue a ticket.
ExitPanel: close the ticket, collect the fee, release the spot.

Both panels push the lot-wide counts to the lot's display board after every
successful operation; the floors push their own counts.
"""

from typing import Optional, Union
import logging

from ..domain.aggregates import ParkingLot, ParkingTicket
from ..domain.interfaces import Clock, PaymentProcessor
from ..domain.models import (
    Vehicle, Receipt, PaymentMethod, PaymentStatus, required_spot_size
)
from ..domain.strategies import PricingStrategy, FlatRatePricingStrategy


class EntryPanel:
    """Issues tickets to arriving vehicles"""

    def __init__(
        self,
        parking_lot: ParkingLot,
        clock: Clock,
        pricing_strategy: Optional[PricingStrategy] = None
    ):
        self.parking_lot = parking_lot
        self.clock = clock
        self.pricing_strategy = pricing_strategy or FlatRatePricingStrategy()
        self.logger = logging.getLogger(self.__class__.__name__)

    def check_in(self, vehicle: Vehicle) -> ParkingTicket:
        """
        Park a vehicle and issue its ticket
        Raises: UnknownVehicleType, NoSpotAvailable (state unchanged)
        """
        required_spot_size(vehicle)
        spot, floor = self.parking_lot.assign_spot(vehicle)

        try:
            ticket = ParkingTicket(
                vehicle=vehicle,
                spot=spot,
                floor_number=floor.floor_number,
                entry_time=self.clock.now(),
                parking_lot_id=self.parking_lot.id,
                pricing_strategy=self.pricing_strategy
            )
        except Exception:
            # Undo the allocation so a failed check-in changes nothing
            self.parking_lot.release_spot(spot)
            raise

        self.parking_lot.update_display_board()
        self.logger.info(
            f"Checked in {vehicle.registration_number} at spot {spot.id}, ticket {ticket.id}"
        )
        return ticket


class ExitPanel:
    """Closes tickets, collects fees and frees spots"""

    def __init__(
        self,
        parking_lot: ParkingLot,
        clock: Clock,
        payment_processor: PaymentProcessor
    ):
        self.parking_lot = parking_lot
        self.clock = clock
        self.payment_processor = payment_processor
        self.logger = logging.getLogger(self.__class__.__name__)

    def check_out(
        self,
        ticket: ParkingTicket,
        payment_method: Union[PaymentMethod, str]
    ) -> Receipt:
        """
        Close the ticket, charge the fee and release the spot
        Raises: TicketAlreadyClosed (nothing charged or released)
        """
        method = PaymentMethod.parse(payment_method)

        # Only the thread that wins the close goes on to charge and release
        ticket.close(self.clock.now())
        fee = ticket.compute_fee()

        self.payment_processor.charge(ticket.id, fee, method)
        self.parking_lot.release_spot(ticket.spot)
        self.parking_lot.update_display_board()
        ticket.mark_paid(method)

        self.logger.info(
            f"Checked out {ticket.vehicle.registration_number} from spot {ticket.spot.id}, "
            f"paid {fee.format()} by {method.value}"
        )
        return Receipt(
            ticket_id=ticket.id,
            fee=fee,
            status=PaymentStatus.PAID,
            payment_method=method,
            entry_time=ticket.entry_time,
            exit_time=ticket.exit_time,
            duration_minutes=ticket.duration_minutes
        )
