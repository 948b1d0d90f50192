"""Event handlers for Orders domain events.

Handlers run when the outbox relay publishes an event, after the
transaction that produced it has committed.
"""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCancelled,
    OrderCreated,
    OrderStatusChanged,
    PaymentStatusChanged,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    """Adds the new order to the buyer's notification feed (log-backed)."""

    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.buyer_notified",
            order_id=str(event.aggregate_id),
            buyer_id=event.buyer_id,
            total_price=event.total_price,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.status_change_processed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.cancellation_processed",
            order_id=str(event.aggregate_id),
            previous_status=event.previous_status,
            stock_released=event.stock_released,
        )


class PaymentStatusChangedHandler(IEventHandler[PaymentStatusChanged]):
    def handle(self, event: PaymentStatusChanged) -> None:
        logger.info(
            "order.payment_change_processed",
            order_id=str(event.aggregate_id),
            old_payment_status=event.old_payment_status,
            new_payment_status=event.new_payment_status,
        )


order_created_handler = OrderCreatedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_cancelled_handler = OrderCancelledHandler()
payment_status_changed_handler = PaymentStatusChangedHandler()
