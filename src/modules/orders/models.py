"""Order, OrderItem and OrderStatusHistory models.

Business rules implemented:
- Items snapshot the product price at checkout (``price_at_purchase``);
  ``subtotal`` is always ``quantity * price_at_purchase``.
- ``total_price`` is the 2-dp rounded sum of subtotals and is recomputed
  with ``recalculate_total`` whenever items change.
- Status changes are recorded in ``OrderStatusHistory`` (append-only); the
  first entry is ``pending`` by the buyer.
- ``inventory_committed`` is true exactly while the order's quantities are
  deducted from the catalog.
- Orders are never deleted; cancellation is a terminal status.
- Buyer and product FKs use PROTECT to preserve purchase history.
"""

from __future__ import annotations

import secrets
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

import structlog
from django.conf import settings
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    DEFAULT_COUNTRY,
    ORDER_NUMBER_MAX_RETRIES,
    POSTAL_CODE_PATTERN,
    TERMINAL_STATES,
    OrderStatus,
    PaymentStatus,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier generated on first save
    (``ORD-YYYYMMDD-XXXXXX``); the UUIDv7 ``id`` is used for API look-ups.
    ``idempotency_key`` is only set for API-created orders.
    """

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_id = models.CharField(max_length=255, blank=True, default="")
    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    carbon_footprint = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0"))],
    )
    shipping_street = models.CharField(max_length=255)
    shipping_city = models.CharField(max_length=100)
    shipping_postal_code = models.CharField(
        max_length=6,
        validators=[RegexValidator(POSTAL_CODE_PATTERN, "Postal code must look like 00-000.")],
    )
    shipping_country = models.CharField(max_length=100, default=DEFAULT_COUNTRY)
    delivery_date = models.DateTimeField(null=True, blank=True)
    is_reviewed = models.BooleanField(default=False)
    inventory_committed = models.BooleanField(default=False)
    idempotency_key = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["buyer", "-created_at"], name="orders_buyer_created_idx"),
        ]

    # ------------------------------------------------------------------
    # State machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def stock_lines(self) -> list[tuple[Any, Decimal]]:
        """``(product_id, quantity)`` for every line, for inventory adjustment."""
        return [(item.product_id, item.quantity) for item in self.items.all()]

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    @staticmethod
    def compute_total(items: Iterable[OrderItem]) -> Decimal:
        total = sum(
            (item.quantity * item.price_at_purchase for item in items),
            Decimal("0"),
        )
        return total.quantize(CENT, rounding=ROUND_HALF_UP)

    def recalculate_total(self) -> Decimal:
        self.total_price = self.compute_total(self.items.all())
        return self.total_price

    @property
    def shipping_address(self) -> dict[str, str]:
        return {
            "street": self.shipping_street,
            "city": self.shipping_city,
            "postal_code": self.shipping_postal_code,
            "country": self.shipping_country,
        }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        now = timezone.now()
        return f"ORD-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        validators=[MinValueValidator(Decimal("1"))],
    )
    price_at_purchase = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, editable=False)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="order_items_quantity_min_one",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = (self.quantity * self.price_at_purchase).quantize(
            CENT, rounding=ROUND_HALF_UP
        )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_id} x{self.quantity} @ {self.price_at_purchase}"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail of order status changes.

    ``actor`` is ``None`` for changes made by the system (payment provider
    callbacks).  Payment failures are recorded with ``old_status ==
    new_status``.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    note = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["order", "created_at"], name="osh_order_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order_id}: {self.old_status} -> {self.new_status}"
