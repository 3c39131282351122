"""Application layer: panels, DTOs and the parking service"""

from .panels import EntryPanel, ExitPanel
from .parking_service import ParkingService
