# File: src/parkflow/application/dtos.py
"""
Data Transfer Objects (DTOs) for the Parking Facility

Input DTOs validate requests from the CLI and HTTP layer; output DTOs are
built from domain objects and carry no behaviour.
"""

from typing import Dict, List, Optional, Any
from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict, field_validator

from ..domain.aggregates import ParkingLot, ParkingTicket
from ..domain.models import PaymentMethod, Receipt, SpotSize


# ============================================================================
# BASE DTO CLASSES
# ============================================================================

class BaseDTO(BaseModel):
    """Base DTO with common functionality"""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )

    def to_dict(self, exclude_none: bool = False, **kwargs) -> Dict[str, Any]:
        """Convert DTO to dictionary"""
        return self.model_dump(exclude_none=exclude_none, **kwargs)

    def to_json(self, **kwargs) -> str:
        """Convert DTO to JSON string"""
        return self.model_dump_json(**kwargs)


def _counts(counts: Dict[SpotSize, int]) -> Dict[str, int]:
    return {size.value: counts.get(size, 0) for size in SpotSize}


# ============================================================================
# INPUT DTOs
# ============================================================================

class CheckInRequest(BaseDTO):
    """A vehicle arriving at the entry panel"""
    vehicle_type: str = Field(..., description="motorcycle, car or bus")
    registration_number: str = Field(..., min_length=1, max_length=20)
    color: str = Field(..., min_length=1, max_length=30)
    attrs: Dict[str, Any] = Field(
        default_factory=dict,
        description="Variant attributes, e.g. engine_size, fast_tag, car_type, capacity"
    )


class CheckOutRequest(BaseDTO):
    """A ticket presented at the exit panel"""
    ticket_id: str = Field(..., min_length=1)
    payment_method: str = Field(default=PaymentMethod.CASH.value)

    @field_validator('payment_method')
    @classmethod
    def validate_payment_method(cls, value: str) -> str:
        return PaymentMethod.parse(value).value


# ============================================================================
# OUTPUT DTOs
# ============================================================================

class TicketResponse(BaseDTO):
    ticket_id: str
    registration_number: str
    vehicle_type: str
    spot_id: str
    spot_size: str
    floor_number: int
    entry_time: datetime
    exit_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    status: str
    fee: Optional[float] = None
    currency: Optional[str] = None
    payment_method: Optional[str] = None

    @classmethod
    def from_ticket(cls, ticket: ParkingTicket) -> 'TicketResponse':
        fee = ticket.fee
        return cls(
            ticket_id=ticket.id,
            registration_number=ticket.vehicle.registration_number,
            vehicle_type=ticket.vehicle.kind.value,
            spot_id=ticket.spot.id,
            spot_size=ticket.spot.size.value,
            floor_number=ticket.floor_number,
            entry_time=ticket.entry_time,
            exit_time=ticket.exit_time,
            duration_minutes=ticket.duration_minutes,
            status=ticket.status.value,
            fee=float(fee.amount) if fee else None,
            currency=fee.currency if fee else None,
            payment_method=ticket.payment_method.value if ticket.payment_method else None
        )


class ReceiptResponse(BaseDTO):
    ticket_id: str
    fee: float
    currency: str
    status: str
    payment_method: str
    entry_time: datetime
    exit_time: datetime
    duration_minutes: int

    @classmethod
    def from_receipt(cls, receipt: Receipt) -> 'ReceiptResponse':
        return cls(
            ticket_id=receipt.ticket_id,
            fee=float(receipt.fee.amount),
            currency=receipt.fee.currency,
            status=receipt.status.value,
            payment_method=receipt.payment_method.value,
            entry_time=receipt.entry_time,
            exit_time=receipt.exit_time,
            duration_minutes=receipt.duration_minutes
        )


class FloorAvailabilityDTO(BaseDTO):
    floor_number: int
    available: Dict[str, int]
    total: Dict[str, int]


class AvailabilityResponse(BaseDTO):
    """Free spots of the lot, overall and per floor"""
    parking_lot_id: str
    name: str
    total_spots: int
    available: Dict[str, int]
    floors: List[FloorAvailabilityDTO]
    active_tickets: int = 0

    @classmethod
    def from_lot(cls, lot: ParkingLot, active_tickets: int = 0) -> 'AvailabilityResponse':
        return cls(
            parking_lot_id=lot.id,
            name=lot.name,
            total_spots=lot.total_spots,
            available=_counts(lot.overall_availability()),
            floors=[
                FloorAvailabilityDTO(
                    floor_number=floor.floor_number,
                    available=_counts(floor.available_counts()),
                    total=_counts(floor.total_counts())
                )
                for floor in lot.floors
            ],
            active_tickets=active_tickets
        )
