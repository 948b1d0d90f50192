"""Domain events for the Orders bounded context.

Extra fields are plain strings so the outbox payload round-trips as JSON.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when a buyer checks out; drives the buyer notification."""

    buyer_id: str = ""
    total_price: str = ""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    old_status: str = ""
    new_status: str = ""
    actor_id: str = ""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised on cancellation; ``stock_released`` tells whether inventory came back."""

    previous_status: str = ""
    reason: str = ""
    stock_released: bool = False


@dataclass(frozen=True)
class PaymentStatusChanged(DomainEvent):
    old_payment_status: str = ""
    new_payment_status: str = ""
