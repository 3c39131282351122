# File: src/parkflow/domain/exceptions.py
"""
Domain errors for the parking facility.

Every error is raised synchronously to the immediate caller and is never
retried internally. A failed check-in leaves the facility state unchanged.
"""


class ParkingError(Exception):
    """Base exception for parking domain errors"""
    pass


class NoSpotAvailable(ParkingError):
    """No free spot of the required size on any floor"""

    def __init__(self, spot_size, message=None):
        self.spot_size = spot_size
        super().__init__(message or f"No {spot_size.value} spot available")


class UnknownVehicleType(ParkingError):
    """Vehicle cannot be classified into a spot size"""

    def __init__(self, vehicle_type):
        self.vehicle_type = vehicle_type
        super().__init__(f"Unknown vehicle type: {vehicle_type!r}")


class SpotAlreadyOccupied(ParkingError):
    """
    Raised when parking into an occupied spot.
    Unreachable under correct locking; indicates a concurrency bug.
    """
    pass


class SpotAlreadyEmpty(ParkingError):
    """
    Raised when releasing a spot that is already empty.
    Unreachable under correct locking; indicates a concurrency bug.
    """
    pass


class TicketAlreadyClosed(ParkingError):
    """Ticket has already been checked out"""

    def __init__(self, ticket_id: str):
        self.ticket_id = ticket_id
        super().__init__(f"Ticket {ticket_id} is already closed")


class NotYetExited(ParkingError):
    """Fee requested for a ticket that has no exit time"""

    def __init__(self, ticket_id: str):
        self.ticket_id = ticket_id
        super().__init__(f"Ticket {ticket_id} has not exited yet")


class TicketNotFound(ParkingError):
    """No ticket registered under the given id"""

    def __init__(self, ticket_id: str):
        self.ticket_id = ticket_id
        super().__init__(f"Ticket {ticket_id} not found")
