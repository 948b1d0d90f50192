"""Order access policy.

Pure role and ownership predicates; no I/O beyond reading the order's
already-loaded items.  Services call them and raise on ``False``.

| Role     | Create | Read                   | Status                      | Cancel                           | Payment            |
|----------|--------|------------------------|-----------------------------|----------------------------------|--------------------|
| consumer | yes    | own orders             | pending->cancelled,         | own, status in {pending, paid}   | pending->completed |
|          |        |                        | shipped->delivered          |                                  |                    |
| farmer   | no     | orders with own item   | paid->processing->shipped   | own item, status in              | no                 |
|          |        |                        | ->delivered                 | {paid, processing}               |                    |
| admin    | yes    | all                    | any                         | any                              | any                |
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import models

from modules.orders.constants import (
    CONSUMER_CANCELLABLE,
    CONSUMER_PAYMENT_TRANSITIONS,
    CONSUMER_TRANSITIONS,
    FARMER_CANCELLABLE,
    FARMER_TRANSITIONS,
)

if TYPE_CHECKING:
    from modules.accounts.principal import Principal
    from modules.orders.models import Order


def is_buyer(principal: Principal, order: Order) -> bool:
    return principal.id is not None and order.buyer_id == principal.id


def has_own_item(principal: Principal, order: Order) -> bool:
    """True when the farmer owns at least one product in the order."""
    return principal.is_farmer and any(
        item.product.owner_id == principal.id for item in order.items.all()
    )


def can_create_order(principal: Principal) -> bool:
    return principal.is_consumer or principal.is_admin


def can_read_order(principal: Principal, order: Order) -> bool:
    if principal.is_admin:
        return True
    if principal.is_consumer:
        return is_buyer(principal, order)
    return has_own_item(principal, order)


def can_transition(principal: Principal, order: Order, new_status: str) -> bool:
    if principal.is_admin:
        return True
    if principal.is_consumer and is_buyer(principal, order):
        return new_status in CONSUMER_TRANSITIONS.get(order.status, set())
    if has_own_item(principal, order):
        return new_status in FARMER_TRANSITIONS.get(order.status, set())
    return False


def can_cancel(principal: Principal, order: Order) -> bool:
    if principal.is_admin:
        return True
    if principal.is_consumer and is_buyer(principal, order):
        return order.status in CONSUMER_CANCELLABLE
    if has_own_item(principal, order):
        return order.status in FARMER_CANCELLABLE
    return False


def can_update_payment(principal: Principal, order: Order, new_payment_status: str) -> bool:
    if principal.is_admin:
        return True
    if principal.is_consumer and is_buyer(principal, order):
        allowed = CONSUMER_PAYMENT_TRANSITIONS.get(order.payment_status, set())
        return new_payment_status in allowed
    return False


def visible_orders(principal: Principal, queryset: models.QuerySet) -> models.QuerySet:
    """Restrict ``queryset`` to what the principal may read."""
    if principal.is_admin:
        return queryset
    if principal.is_consumer:
        return queryset.filter(buyer_id=principal.id)
    if principal.is_farmer:
        return queryset.filter(items__product__owner_id=principal.id).distinct()
    return queryset.none()
