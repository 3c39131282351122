# File: src/parkflow/domain/interfaces.py
"""
Collaborator interfaces injected into the allocation core.

The core never performs I/O itself: time, availability displays and payment
collection are reached only through these protocols.
"""

from typing import Dict, Protocol, runtime_checkable
from datetime import datetime

from .models import Money, PaymentMethod, SpotSize


@runtime_checkable
class Clock(Protocol):
    """Source of timestamps for tickets"""

    def now(self) -> datetime:
        ...


@runtime_checkable
class DisplayBoard(Protocol):
    """
    Receives availability counts after every park/unpark.
    ``scope`` is ``"lot"`` or ``"floor-<number>"``.
    """

    def update(self, counts: Dict[SpotSize, int], scope: str) -> None:
        ...


@runtime_checkable
class PaymentProcessor(Protocol):
    """Collects the fee of a check-out; assumed to always succeed"""

    def charge(self, ticket_id: str, amount: Money, method: PaymentMethod) -> None:
        ...
