"""In-process notifications emitted after a payment commits (UI refresh, wallet credit)."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Awaitable, Callable, List, Optional
from uuid import UUID

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentApplied:
    payment_id: UUID
    student_id: UUID
    so_center_id: Optional[UUID]
    amount: Decimal
    applied_amount: Decimal
    excess_amount: Decimal
    method: str
    receipt_number: str
    created_at: datetime


PaymentListener = Callable[[PaymentApplied], Awaitable[None]]


class PaymentEvents:
    """Registry of async listeners. Listener failures are logged and never undo the payment."""

    def __init__(self) -> None:
        self._listeners: List[PaymentListener] = []

    def subscribe(self, listener: PaymentListener) -> PaymentListener:
        if listener not in self._listeners:
            self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: PaymentListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def emit(self, event: PaymentApplied) -> None:
        for listener in list(self._listeners):
            try:
                await listener(event)
            except Exception:
                logger.exception(
                    "Payment listener %s failed for payment %s (receipt %s)",
                    getattr(listener, "__name__", listener), event.payment_id, event.receipt_number,
                )


payment_events = PaymentEvents()
