"""Order DTOs for the Service Layer.

Framework-agnostic pydantic v2 models, immutable (``frozen=True``).

- ``CreateOrderItemDTO`` / ``ShippingAddressDTO`` / ``CreateOrderDTO``: checkout input.
- ``UpdateOrderStatusDTO``, ``CancelOrderDTO``, ``UpdatePaymentStatusDTO``: transition input.
  Status values stay plain strings here; the service validates them
  against the enumerations so direct callers get the same error.
- ``InvoiceDTO`` and ``FarmerOrderDTO``: read models built from an ``Order``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.orders.constants import DEFAULT_COUNTRY, POSTAL_CODE_PATTERN
from modules.products.constants import QUANTITY_PLACES

if TYPE_CHECKING:
    from modules.orders.models import Order


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """``price_at_purchase`` is resolved by the service from the catalog."""

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: Decimal = Field(max_digits=12, decimal_places=QUANTITY_PLACES)

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_at_least_one(cls, v: Decimal) -> Decimal:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class ShippingAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    street: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(pattern=POSTAL_CODE_PATTERN)
    country: str = Field(default=DEFAULT_COUNTRY, min_length=1, max_length=100)


class CreateOrderDTO(BaseModel):
    """Checkout request.

    Validates:
    - ``items`` must contain at least one line.
    - A product may appear only once.
    """

    model_config = ConfigDict(frozen=True)

    items: List[CreateOrderItemDTO]
    shipping_address: ShippingAddressDTO
    idempotency_key: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @model_validator(mode="after")
    def no_duplicate_products(self):
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Duplicate product IDs are not allowed in the same order.")
        return self


class UpdateOrderStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str
    note: str = Field(default="", max_length=500)


class CancelOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: str = Field(default="", max_length=500)


class UpdatePaymentStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_status: str
    payment_id: Optional[str] = Field(default=None, max_length=255)


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


class InvoiceLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    product_name: str
    unit: str
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal


class InvoiceDTO(BaseModel):
    """Invoice data for an order; rendering to a document is the client's job."""

    model_config = ConfigDict(frozen=True)

    invoice_number: str
    order_id: UUID
    issued_at: datetime
    order_date: datetime
    buyer_name: str
    buyer_email: str
    shipping_address: dict
    lines: List[InvoiceLineDTO]
    total: Decimal
    status: str
    payment_status: str
    payment_id: str

    @classmethod
    def from_entity(cls, order: Order, issued_at: datetime) -> InvoiceDTO:
        """Assumes ``items__product`` and ``buyer`` are loaded."""
        buyer = order.buyer
        lines = [
            InvoiceLineDTO(
                product_id=item.product_id,
                product_name=item.product.name,
                unit=item.product.unit,
                quantity=item.quantity,
                unit_price=item.price_at_purchase,
                line_total=item.subtotal,
            )
            for item in order.items.all()
        ]
        return cls(
            invoice_number=f"INV-{order.order_number.removeprefix('ORD-')}",
            order_id=order.id,
            issued_at=issued_at,
            order_date=order.created_at,
            buyer_name=buyer.get_full_name() or buyer.username,
            buyer_email=buyer.email,
            shipping_address=order.shipping_address,
            lines=lines,
            total=order.total_price,
            status=order.status,
            payment_status=order.payment_status,
            payment_id=order.payment_id,
        )


class FarmerOrderItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    product_name: str
    quantity: Decimal
    price_at_purchase: Decimal
    subtotal: Decimal


class FarmerOrderDTO(BaseModel):
    """An order reduced to the lines that belong to one farmer."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    order_number: str
    buyer_id: UUID
    status: str
    payment_status: str
    created_at: datetime
    items: List[FarmerOrderItemDTO]
    farmer_total: Decimal

    @classmethod
    def from_entity(cls, order: Order, farmer_id: UUID) -> FarmerOrderDTO:
        own_items = [
            item for item in order.items.all() if item.product.owner_id == farmer_id
        ]
        return cls(
            id=order.id,
            order_number=order.order_number,
            buyer_id=order.buyer_id,
            status=order.status,
            payment_status=order.payment_status,
            created_at=order.created_at,
            items=[
                FarmerOrderItemDTO(
                    product_id=item.product_id,
                    product_name=item.product.name,
                    quantity=item.quantity,
                    price_at_purchase=item.price_at_purchase,
                    subtotal=item.subtotal,
                )
                for item in own_items
            ],
            farmer_total=sum((item.subtotal for item in own_items), Decimal("0.00")),
        )
