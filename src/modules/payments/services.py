"""Payment use cases.

``create_payment_intent`` starts a card payment for a pending order.
``handle_event`` applies provider callbacks to the order through the same
payment state machine API clients use, acting as the system principal.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

import structlog

from modules.accounts.principal import Principal
from modules.orders import policies
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.dtos import UpdatePaymentStatusDTO
from modules.orders.exceptions import OrderNotFound, PaymentNotPayable, StatusUnchanged
from modules.payments.exceptions import PaymentNotAllowed

if TYPE_CHECKING:
    from modules.orders.services import OrderService
    from modules.payments.dtos import PaymentIntentDTO, WebhookEventDTO
    from modules.payments.gateway import StripeGateway

logger = structlog.get_logger(__name__)

# Provider event type -> payment status it records.
EVENT_PAYMENT_STATUS = {
    "payment_intent.succeeded": PaymentStatus.COMPLETED,
    "payment_intent.payment_failed": PaymentStatus.FAILED,
}


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentService:
    def __init__(self, order_service: OrderService, gateway: StripeGateway) -> None:
        self._orders = order_service
        self._gateway = gateway

    def create_payment_intent(self, principal: Principal, order_id: str) -> PaymentIntentDTO:
        """Raises:
            OrderNotFound: unknown order, or not visible to the caller.
            PaymentNotAllowed: the caller is not the buyer.
            PaymentNotPayable: the order is not pending or already paid.
            ExternalDependencyError: the provider failed.
        """
        order = self._orders.get_order(principal, order_id)
        if not policies.is_buyer(principal, order):
            raise PaymentNotAllowed("Only the buyer can pay for this order.")
        if order.status != OrderStatus.PENDING or order.payment_status == PaymentStatus.COMPLETED:
            raise PaymentNotPayable(
                f"Order is {order.status} with payment {order.payment_status}."
            )

        intent = self._gateway.create_payment_intent(
            amount=to_minor_units(order.total_price),
            metadata={"orderId": str(order.id), "buyerId": str(order.buyer_id)},
        )
        self._orders.attach_payment_reference(order, intent.payment_intent_id)
        return intent

    def handle_event(self, event: WebhookEventDTO) -> str:
        """Apply a verified provider event; returns what was done.

        Unknown event types, events without a known order and already
        recorded outcomes are logged and skipped, never raised.
        """
        log = logger.bind(event_id=event.id, event_type=event.type, order_id=event.order_id)

        new_payment_status = EVENT_PAYMENT_STATUS.get(event.type)
        if new_payment_status is None:
            log.info("payment.webhook_ignored")
            return "ignored"
        if not event.order_id:
            log.warning("payment.webhook_without_order")
            return "order_missing"

        dto = UpdatePaymentStatusDTO(
            payment_status=new_payment_status,
            payment_id=event.payment_intent_id or None,
        )
        try:
            self._orders.update_payment_status(Principal.system(), event.order_id, dto)
        except OrderNotFound:
            log.warning("payment.webhook_order_not_found")
            return "order_missing"
        except StatusUnchanged:
            log.info("payment.webhook_duplicate", payment_status=new_payment_status)
            return "unchanged"

        if new_payment_status == PaymentStatus.FAILED:
            log.warning("payment.failed", failure_message=event.failure_message)
        else:
            log.info("payment.completed")
        return new_payment_status
