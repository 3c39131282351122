# File: src/parkflow/domain/strategies.py
"""
Strategy Pattern Implementation for the Parking Facility

This module encapsulates the two algorithms the facility applies:
1. Allocation Strategies - which floor a vehicle is parked on
2. Pricing Strategies - how the fee of a closed ticket is computed

The facility's declared policies are LowestFloorFirstStrategy and
FlatRatePricingStrategy; both are injected so they can be swapped in tests.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Sequence, Tuple, TYPE_CHECKING
from datetime import datetime, timedelta
from decimal import Decimal
import logging
import math

from .models import Money, ParkingSpot, SpotSize, Vehicle

if TYPE_CHECKING:
    from .aggregates import ParkingFloor


# ============================================================================
# STRATEGY INTERFACES
# ============================================================================

class AllocationStrategy(ABC):
    """
    Abstract base class for allocation strategies
    Defines the interface for choosing a spot across floors
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def allocate_spot(
        self,
        floors: Sequence['ParkingFloor'],
        vehicle: Vehicle,
        size: SpotSize
    ) -> Optional[Tuple[ParkingSpot, 'ParkingFloor']]:
        """
        Park the vehicle in a free spot of the given size
        Returns: (spot, floor) on success, None if every floor is full
        """
        pass

    def get_strategy_name(self) -> str:
        """Get human-readable strategy name"""
        return self.__class__.__name__.replace("Strategy", "")

    def __str__(self) -> str:
        return f"{self.get_strategy_name()} Strategy"


class PricingStrategy(ABC):
    """
    Abstract base class for pricing strategies
    Defines the interface for fee calculation algorithms
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def calculate_parking_fee(
        self,
        size: SpotSize,
        entry_time: datetime,
        exit_time: datetime
    ) -> Money:
        """
        Calculate the parking fee for a stay in a spot of the given size
        Returns: Calculated fee
        """
        pass

    @staticmethod
    def billable_minutes(entry_time: datetime, exit_time: datetime) -> int:
        """Duration of a stay in whole minutes, rounded up"""
        if exit_time < entry_time:
            raise ValueError("Exit time cannot be before entry time")
        return math.ceil((exit_time - entry_time) / timedelta(minutes=1))


# ============================================================================
# ALLOCATION STRATEGIES
# ============================================================================

class LowestFloorFirstStrategy(AllocationStrategy):
    """
    Strategy: Fill lower floors first
    Floors are tried in ascending floor-number order and the first floor with
    a free spot of the needed size wins.
    """

    def allocate_spot(
        self,
        floors: Sequence['ParkingFloor'],
        vehicle: Vehicle,
        size: SpotSize
    ) -> Optional[Tuple[ParkingSpot, 'ParkingFloor']]:
        for floor in sorted(floors, key=lambda f: f.floor_number):
            spot = floor.try_assign(vehicle, size)
            if spot is not None:
                return spot, floor
            self.logger.debug(f"Floor {floor.floor_number} has no free {size.value} spot")
        return None


# ============================================================================
# PRICING STRATEGIES
# ============================================================================

DEFAULT_BASE_RATES: Dict[SpotSize, Decimal] = {
    SpotSize.SMALL: Decimal('10'),
    SpotSize.MEDIUM: Decimal('50'),
    SpotSize.LARGE: Decimal('100'),
}


class FlatRatePricingStrategy(PricingStrategy):
    """
    Strategy: Flat per-hour rate by spot size with a minimum charge

    - Duration is billed in started hours
    - The fee is never lower than one base rate
    - Any stay of 60 minutes or less costs exactly one base rate
    """

    def __init__(
        self,
        base_rates: Optional[Dict[SpotSize, Decimal]] = None,
        currency: str = "USD"
    ):
        super().__init__()
        rates = dict(DEFAULT_BASE_RATES)
        if base_rates:
            rates.update({size: Decimal(str(rate)) for size, rate in base_rates.items()})

        for size, rate in rates.items():
            if rate < Decimal('0'):
                raise ValueError(f"Base rate for {size.value} cannot be negative")

        self.base_rates = rates
        self.currency = currency

    def base_rate(self, size: SpotSize) -> Money:
        """Get the hourly base rate for a spot size"""
        return Money(self.base_rates[size], self.currency)

    def calculate_parking_fee(
        self,
        size: SpotSize,
        entry_time: datetime,
        exit_time: datetime
    ) -> Money:
        duration_minutes = self.billable_minutes(entry_time, exit_time)
        rate = self.base_rates[size]

        duration_hours = math.ceil(duration_minutes / 60)
        fee = max(rate, duration_hours * rate)

        # Minimum-stay charge
        if duration_minutes <= 60:
            fee = rate

        self.logger.debug(
            f"{size.value} stay of {duration_minutes} min "
            f"({duration_hours} h) billed {fee} {self.currency}"
        )
        return Money(fee, self.currency)
