# File: src/parkflow/presentation/api.py
"""
HTTP surface of the facility (FastAPI)

POST /checkin             issue a ticket
POST /checkout            settle a ticket and free its spot
GET  /availability        free spots, overall and per floor
GET  /tickets/{ticket_id} ticket details

Domain errors are mapped to status codes by exception handlers; the routes
themselves only translate between DTOs and the service.
"""

from typing import Annotated, Optional
import logging

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from ..application.dtos import (
    AvailabilityResponse, CheckInRequest, CheckOutRequest,
    ReceiptResponse, TicketResponse
)
from ..application.parking_service import ParkingService
from ..config import load_config
from ..domain.exceptions import (
    NoSpotAvailable, ParkingError, TicketAlreadyClosed,
    TicketNotFound, UnknownVehicleType
)
from ..infrastructure.factories import FacilityFactory

logger = logging.getLogger(__name__)


def get_parking_service(request: Request) -> ParkingService:
    return request.app.state.parking_service


ParkingServiceDependency = Annotated[ParkingService, Depends(get_parking_service)]

router = APIRouter(tags=["Parking"])


# ===== Entry / Exit =====

@router.post("/checkin", status_code=201, description="Check a vehicle in")
def check_in(
    payload: CheckInRequest,
    parking_service: ParkingServiceDependency
) -> TicketResponse:
    return parking_service.check_in(payload)


@router.post("/checkout", description="Check a vehicle out and pay")
def check_out(
    payload: CheckOutRequest,
    parking_service: ParkingServiceDependency
) -> ReceiptResponse:
    return parking_service.check_out(payload)


# ===== Queries =====

@router.get("/availability", description="Free spots by size")
def availability(parking_service: ParkingServiceDependency) -> AvailabilityResponse:
    return parking_service.availability()


@router.get("/tickets/{ticket_id}", description="Ticket details")
def get_ticket(ticket_id: str, parking_service: ParkingServiceDependency) -> TicketResponse:
    return parking_service.get_ticket(ticket_id)


# ===== Error mapping =====

_STATUS_CODES = (
    (UnknownVehicleType, 422),
    (NoSpotAvailable, 409),
    (TicketAlreadyClosed, 409),
    (TicketNotFound, 404),
)


async def parking_error_handler(request: Request, exc: ParkingError) -> JSONResponse:
    status_code = 400
    for error_type, code in _STATUS_CODES:
        if isinstance(exc, error_type):
            status_code = code
            break

    logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.__class__.__name__, "detail": str(exc)}
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} -> 422: {exc}")
    return JSONResponse(
        status_code=422,
        content={"error": "ValidationError", "detail": str(exc)}
    )


def create_app(parking_service: Optional[ParkingService] = None) -> FastAPI:
    """
    Build the FastAPI application around a service
    Without a service, the default facility from configuration is used
    """
    if parking_service is None:
        parking_service = FacilityFactory().create_service(load_config())

    app = FastAPI(title="parkflow", description="Parking spot allocation and billing")
    app.state.parking_service = parking_service
    app.include_router(router)
    app.add_exception_handler(ParkingError, parking_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    return app
