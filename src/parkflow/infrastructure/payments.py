# File: src/parkflow/infrastructure/payments.py
"""
Payment collection at the exit panel.

No gateway is integrated: the processor logs the charge and keeps a ledger
that tests and the demo can inspect.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List
import logging
import threading

from ..domain.models import Money, PaymentMethod


@dataclass(frozen=True)
class ChargeRecord:
    """One collected payment"""
    ticket_id: str
    amount: Money
    method: PaymentMethod
    charged_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticket_id": self.ticket_id,
            "amount": self.amount.to_dict(),
            "method": self.method.value,
            "charged_at": self.charged_at.isoformat(),
        }


class LoggingPaymentProcessor:
    """Always succeeds; records each charge in an in-memory ledger"""

    def __init__(self):
        self._ledger: List[ChargeRecord] = []
        self._lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

    def charge(self, ticket_id: str, amount: Money, method: PaymentMethod) -> None:
        record = ChargeRecord(ticket_id=ticket_id, amount=amount, method=method)
        with self._lock:
            self._ledger.append(record)
        self._logger.info(
            f"Charged {amount.format()} for ticket {ticket_id} via {method.value}"
        )

    @property
    def ledger(self) -> List[ChargeRecord]:
        with self._lock:
            return list(self._ledger)

    def charges_for(self, ticket_id: str) -> List[ChargeRecord]:
        return [record for record in self.ledger if record.ticket_id == ticket_id]
