"""Django ORM implementation of the Order repository.

Writes run inside the service's ``transaction.atomic`` block; ``save``
flushes the aggregate's domain events into the outbox in that same
transaction.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.core.outbox import record_domain_events
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def _base_queryset(self) -> models.QuerySet:
        return Order.objects.select_related("buyer").prefetch_related(
            "items__product__owner", "status_history"
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any], items: List[Dict[str, Any]]) -> Order:
        """``items`` hold ``product_id``, ``quantity`` and ``price_at_purchase``."""
        order = Order(**data)
        order.save()

        lines = []
        for item_data in items:
            item = OrderItem(order=order, **item_data)
            item.save()
            lines.append(item)

        order.total_price = Order.compute_total(lines)
        order.save(update_fields=["total_price", "updated_at"])

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            item_count=len(lines),
            total_price=str(order.total_price),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return self._base_queryset().select_for_update(of=("self",)).filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        return self._base_queryset().filter(idempotency_key=key).first()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        entity.save()
        event_count = record_domain_events(entity, OUTBOX_TOPIC)
        logger.info(
            "order.saved",
            order_id=str(entity.id),
            status=entity.status,
            payment_status=entity.payment_status,
            event_count=event_count,
        )
        return entity

    def add_history(
        self,
        order: Order,
        new_status: str,
        actor_id: Optional[UUID],
        note: str = "",
        old_status: Optional[str] = None,
    ) -> OrderStatusHistory:
        entry = OrderStatusHistory.objects.create(
            order=order,
            old_status=old_status,
            new_status=new_status,
            actor_id=actor_id,
            note=note,
        )
        logger.info(
            "order.history_added",
            order_id=str(order.id),
            old_status=old_status,
            new_status=new_status,
        )
        return entry
