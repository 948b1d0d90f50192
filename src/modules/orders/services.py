"""Order service layer (Use Cases).

Orchestrates checkout and the two order state machines.  Every command is
one ``transaction.atomic`` unit: the order row is locked, the access
policy and transition tables are consulted, and the status save, history
append, inventory adjustment and outbox write commit together or not at
all.

Business rules enforced:
- Only consumers and admins check out; products must exist, be available
  and hold enough quantity; prices are snapshotted.
- Order status moves along the per-role tables in ``constants``; admins
  may set any status; ``delivered`` and ``cancelled`` are final for all.
- Entering ``paid``/``processing`` deducts stock once; cancelling a
  committed order gives it back.
- Payment completion on a ``pending`` order cascades the order to ``paid``.
- Orders the caller may not read are reported as not found.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

import structlog
from django.db import models, transaction
from django.utils import timezone

from modules.core.exceptions import DomainValidationError, PermissionDeniedError
from modules.orders import policies
from modules.orders.constants import (
    COMMITTED_STATES,
    ORDER_CANCELLED_NOTE,
    ORDER_CREATED_NOTE,
    PAYMENT_COMPLETED_NOTE,
    PAYMENT_FAILED_NOTE,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.dtos import InvoiceDTO
from modules.orders.events import (
    OrderCancelled,
    OrderCreated,
    OrderStatusChanged,
    PaymentStatusChanged,
)
from modules.orders.exceptions import (
    IdempotencyKeyReused,
    InsufficientQuantity,
    InvalidStatusValue,
    OrderAlreadyFinal,
    OrderCreationNotAllowed,
    OrderNotFound,
    OrderProductNotFound,
    ProductUnavailable,
    StatusUnchanged,
    TransitionNotAllowed,
)
from modules.orders.footprint import order_co2_kg
from modules.products.constants import ProductStatus

if TYPE_CHECKING:
    from modules.accounts.principal import Principal
    from modules.accounts.repositories.interfaces import IUserRepository
    from modules.orders.dtos import (
        CancelOrderDTO,
        CreateOrderDTO,
        UpdateOrderStatusDTO,
        UpdatePaymentStatusDTO,
    )
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository
    from modules.products.services import InventoryService

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and the catalog's ``InventoryService`` via
    constructor injection.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        user_repository: IUserRepository,
        inventory: InventoryService,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._user_repo = user_repository
        self._inventory = inventory

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, principal: Principal, dto: CreateOrderDTO) -> tuple[Order, bool]:
        """Check out: snapshot prices, compute totals and footprint.

        Returns ``(order, created)``; ``created`` is false when the
        idempotency key replays an earlier checkout.

        Stock is not deducted here; it is committed when the order is paid.

        Raises:
            OrderCreationNotAllowed: caller is a farmer (or unknown).
            OrderProductNotFound: a product does not exist.
            ProductUnavailable: a product is not ``available``.
            InsufficientQuantity: a product holds less than requested.
        """
        if not policies.can_create_order(principal):
            raise OrderCreationNotAllowed("Only consumers can place orders.")

        log = logger.bind(buyer_id=str(principal.id))
        log.info("order.creation_started", item_count=len(dto.items))

        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(dto.idempotency_key)
            if existing is not None:
                if existing.buyer_id != principal.id:
                    raise IdempotencyKeyReused("Idempotency key already used.")
                log.info("order.idempotency_hit", order_id=str(existing.id))
                return existing, False

        buyer = self._user_repo.get_by_id(str(principal.id))
        if buyer is None:
            raise OrderCreationNotAllowed("Buyer account is not active.")

        lines = []
        footprint_lines = []
        for item in dto.items:
            product = self._product_repo.get_by_id(str(item.product_id))
            if not product:
                raise OrderProductNotFound(f"Product {item.product_id} not found.")
            if product.status != ProductStatus.AVAILABLE:
                raise ProductUnavailable(f"Product {product.name} is not available.")
            if product.quantity < item.quantity:
                raise InsufficientQuantity(
                    f"Product {product.name}: requested {item.quantity}, "
                    f"available {product.quantity}."
                )
            lines.append(
                {
                    "product_id": product.id,
                    "quantity": item.quantity,
                    "price_at_purchase": product.price,
                }
            )
            footprint_lines.append((product.coordinates, item.quantity, product.category))

        address = dto.shipping_address
        order = self._order_repo.create(
            {
                "buyer_id": buyer.id,
                "shipping_street": address.street,
                "shipping_city": address.city,
                "shipping_postal_code": address.postal_code,
                "shipping_country": address.country,
                "carbon_footprint": order_co2_kg(buyer.coordinates, footprint_lines),
                "idempotency_key": dto.idempotency_key,
            },
            lines,
        )
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                buyer_id=str(buyer.id),
                total_price=str(order.total_price),
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(order, OrderStatus.PENDING, buyer.id, ORDER_CREATED_NOTE)

        log.info(
            "order.created",
            order_id=str(order.id),
            total_price=str(order.total_price),
            carbon_footprint=str(order.carbon_footprint),
        )
        return self._order_repo.get_by_id(str(order.id)), True

    @transaction.atomic
    def update_status(
        self, principal: Principal, order_id: str, dto: UpdateOrderStatusDTO
    ) -> Order:
        """Move the order to ``dto.status`` if the caller's role allows it.

        Raises:
            InvalidStatusValue: status outside the enumeration.
            OrderNotFound: unknown order, or not visible to the caller.
            OrderAlreadyFinal: the order is delivered or cancelled.
            StatusUnchanged: the order already has this status.
            TransitionNotAllowed: the edge is not open to the caller.
        """
        new_status = self._parse(dto.status, OrderStatus)
        order = self._get_visible(principal, order_id, lock=True)
        log = logger.bind(
            order_id=str(order.id),
            current_status=order.status,
            new_status=new_status,
            role=principal.role,
        )

        self._ensure_open(order, new_status)
        if not policies.can_transition(principal, order, new_status):
            log.warning("order.transition_denied")
            raise TransitionNotAllowed(
                f"{principal.role} cannot move an order from {order.status} to {new_status}."
            )

        self._apply_transition(
            order,
            new_status,
            principal.id,
            dto.note or f"Status changed to {new_status}",
        )
        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order.id))

    @transaction.atomic
    def cancel_order(
        self, principal: Principal, order_id: str, dto: CancelOrderDTO
    ) -> Order:
        """Cancel an order, releasing committed stock.

        Raises:
            OrderNotFound: unknown order, or not visible to the caller.
            OrderAlreadyFinal: the order is delivered or cancelled.
            TransitionNotAllowed: the caller may not cancel at this status.
        """
        order = self._get_visible(principal, order_id, lock=True)
        log = logger.bind(order_id=str(order.id), current_status=order.status)

        if order.is_terminal:
            raise OrderAlreadyFinal(f"Order is already {order.status}.")
        if not policies.can_cancel(principal, order):
            log.warning("order.cancel_denied", role=principal.role)
            raise TransitionNotAllowed(
                f"{principal.role} cannot cancel an order that is {order.status}."
            )

        self._apply_transition(
            order,
            OrderStatus.CANCELLED,
            principal.id,
            dto.reason or ORDER_CANCELLED_NOTE,
            reason=dto.reason,
        )
        log.info("order.cancelled")
        return self._order_repo.get_by_id(str(order.id))

    @transaction.atomic
    def update_payment_status(
        self, principal: Principal, order_id: str, dto: UpdatePaymentStatusDTO
    ) -> Order:
        """Record a payment outcome, cascading ``pending`` orders to ``paid``.

        Raises:
            InvalidStatusValue: payment status outside the enumeration.
            OrderNotFound: unknown order, or not visible to the caller.
            OrderAlreadyFinal: non-admin change on a delivered/cancelled order.
            StatusUnchanged: the payment already has this status.
            TransitionNotAllowed: the edge is not open to the caller.
        """
        new_payment_status = self._parse(dto.payment_status, PaymentStatus)
        order = self._get_visible(principal, order_id, lock=True)
        log = logger.bind(
            order_id=str(order.id),
            current_payment_status=order.payment_status,
            new_payment_status=new_payment_status,
            role=principal.role,
        )

        if order.is_terminal and not principal.is_admin:
            raise OrderAlreadyFinal(f"Order is already {order.status}.")
        if new_payment_status == order.payment_status:
            raise StatusUnchanged(f"Payment is already {order.payment_status}.")
        if not policies.can_update_payment(principal, order, new_payment_status):
            log.warning("order.payment_change_denied")
            raise TransitionNotAllowed(
                f"{principal.role} cannot change payment from "
                f"{order.payment_status} to {new_payment_status}."
            )

        old_payment_status = order.payment_status
        order.payment_status = new_payment_status
        if dto.payment_id:
            order.payment_id = dto.payment_id
        order.add_domain_event(
            PaymentStatusChanged(
                aggregate_id=order.id,
                old_payment_status=old_payment_status,
                new_payment_status=new_payment_status,
            )
        )

        if new_payment_status == PaymentStatus.COMPLETED and order.status == OrderStatus.PENDING:
            self._apply_transition(order, OrderStatus.PAID, principal.id, PAYMENT_COMPLETED_NOTE)
            log.info("order.payment_cascaded", new_status=OrderStatus.PAID)
        else:
            self._order_repo.save(order)
            if new_payment_status == PaymentStatus.FAILED:
                self._order_repo.add_history(
                    order,
                    order.status,
                    principal.id,
                    PAYMENT_FAILED_NOTE,
                    old_status=order.status,
                )

        log.info("order.payment_status_updated")
        return self._order_repo.get_by_id(str(order.id))

    @transaction.atomic
    def attach_payment_reference(self, order: Order, payment_id: str) -> Order:
        """Store the provider's payment reference without changing any status."""
        order.payment_id = payment_id
        order.save(update_fields=["payment_id", "updated_at"])
        logger.info("order.payment_reference_attached", order_id=str(order.id))
        return order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, principal: Principal, order_id: str) -> Order:
        """Raises ``OrderNotFound`` when missing or not visible to the caller."""
        return self._get_visible(principal, order_id)

    def list_orders(
        self, principal: Principal, filters: Optional[Dict[str, Any]] = None
    ) -> models.QuerySet:
        return policies.visible_orders(principal, self._order_repo.list(filters))

    def farmer_orders(
        self, principal: Principal, farmer_id: Optional[str] = None
    ) -> tuple[models.QuerySet, UUID]:
        """Orders containing the farmer's products and the farmer id they were scoped to.

        Farmers always see their own; admins must name a farmer.
        """
        if principal.is_farmer:
            scope = principal.id
        elif principal.is_admin and farmer_id:
            try:
                scope = UUID(str(farmer_id))
            except ValueError:
                raise DomainValidationError(
                    f"'{farmer_id}' is not a valid farmer id.", code="invalid_farmer_id"
                )
        else:
            raise PermissionDeniedError(
                "Only farmers can list their orders.", code="farmer_only"
            )
        queryset = self._order_repo.list().filter(items__product__owner_id=scope).distinct()
        return queryset, scope

    def get_invoice(self, principal: Principal, order_id: str) -> InvoiceDTO:
        order = self._get_visible(principal, order_id)
        return InvoiceDTO.from_entity(order, issued_at=timezone.now())

    # ------------------------------------------------------------------
    # Transition engine
    # ------------------------------------------------------------------

    def _apply_transition(
        self,
        order: Order,
        new_status: str,
        actor_id: Optional[UUID],
        note: str,
        reason: str = "",
    ) -> None:
        """Mutate status with its side effects; the caller holds the order lock."""
        old_status = order.status
        order.status = new_status
        stock_released = False

        if new_status == OrderStatus.DELIVERED:
            order.delivery_date = timezone.now()

        if new_status in COMMITTED_STATES and not order.inventory_committed:
            self._inventory.commit(order.stock_lines())
            order.inventory_committed = True
        elif new_status == OrderStatus.CANCELLED and order.inventory_committed:
            self._inventory.release(order.stock_lines())
            order.inventory_committed = False
            stock_released = True

        if new_status == OrderStatus.CANCELLED:
            order.add_domain_event(
                OrderCancelled(
                    aggregate_id=order.id,
                    previous_status=old_status,
                    reason=reason,
                    stock_released=stock_released,
                )
            )
        else:
            order.add_domain_event(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    old_status=old_status,
                    new_status=new_status,
                    actor_id=str(actor_id) if actor_id else "",
                )
            )

        self._order_repo.save(order)
        self._order_repo.add_history(order, new_status, actor_id, note, old_status=old_status)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse(value: str, choices: type[models.TextChoices]) -> str:
        if value not in choices.values:
            raise InvalidStatusValue(
                f"'{value}' is not one of: {', '.join(choices.values)}."
            )
        return choices(value)

    @staticmethod
    def _ensure_open(order: Order, new_status: str) -> None:
        if order.is_terminal:
            raise OrderAlreadyFinal(f"Order is already {order.status}.")
        if new_status == order.status:
            raise StatusUnchanged(f"Order is already {order.status}.")

    def _get_visible(self, principal: Principal, order_id: str, lock: bool = False) -> Order:
        order = (
            self._order_repo.get_for_update(order_id)
            if lock
            else self._order_repo.get_by_id(order_id)
        )
        if order is None or not policies.can_read_order(principal, order):
            raise OrderNotFound(f"Order {order_id} not found.")
        return order
