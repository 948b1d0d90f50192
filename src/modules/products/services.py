"""Catalog service layer (Use Cases).

``ProductService`` covers catalog management by farmers and admins.
``InventoryService`` is the catalog side of the order workflow: it adjusts
availability when orders commit or release stock.

Business rules enforced here:
- Only farmers and admins create products; the creator becomes the owner.
- Only the owner or an admin updates, re-statuses or deletes a product, and
  the owner can never be reassigned.
- Every quantity change re-establishes ``quantity <= 0 => unavailable`` and
  records the resulting status toggle in the product history.
- Inventory commits clamp at zero; releases add back the full amount.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Tuple
from uuid import UUID

import structlog
from django.db import models, transaction

from modules.products.constants import (
    BACK_IN_STOCK_NOTE,
    OUT_OF_STOCK_NOTE,
    PRODUCT_ADDED_NOTE,
    SUBCATEGORIES,
    ProductStatus,
)
from modules.products.exceptions import (
    InvalidProductData,
    ProductAccessDenied,
    ProductNotFound,
    ProductOutOfStock,
)
from modules.products.models import Product

if TYPE_CHECKING:
    from modules.accounts.principal import Principal
    from modules.products.dtos import (
        CreateProductDTO,
        UpdateProductDTO,
        UpdateProductStatusDTO,
    )
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

# (product_id, quantity) pairs, one per order line.
StockLines = Iterable[Tuple[UUID, Decimal]]


def can_manage_product(principal: Principal, product: Product) -> bool:
    return principal.is_admin or product.owner_id == principal.id


class InventoryService:
    """Availability adjustments driven by order transitions.

    Callers own the transaction: these methods must run inside the
    ``transaction.atomic`` block that also persists the order.
    """

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    def adjust_availability(self, product: Product, delta: Decimal) -> Product:
        """Apply ``delta`` to the product's quantity.

        Negative deltas (commit) clamp at zero; positive deltas (release)
        add back in full.  A status toggle is appended to the history with
        the owner as actor.
        """
        if delta < 0:
            new_quantity = max(Decimal("0"), product.quantity + delta)
        else:
            new_quantity = product.quantity + delta

        old_quantity = product.quantity
        toggled = product.apply_quantity(new_quantity)
        self._repo.save(product)

        if toggled is not None:
            note = OUT_OF_STOCK_NOTE if toggled == ProductStatus.UNAVAILABLE else BACK_IN_STOCK_NOTE
            self._repo.add_history(product, toggled, product.owner_id, note)

        logger.info(
            "inventory.adjusted",
            product_id=str(product.id),
            delta=str(delta),
            old_quantity=str(old_quantity),
            new_quantity=str(new_quantity),
            status=product.status,
        )
        return product

    def commit(self, lines: StockLines) -> None:
        """Deduct every line's quantity (order entered the committed set)."""
        self._apply(lines, sign=-1)

    def release(self, lines: StockLines) -> None:
        """Give every line's quantity back (committed order cancelled)."""
        self._apply(lines, sign=1)

    def _apply(self, lines: StockLines, sign: int) -> None:
        lines = list(lines)
        locked = self._repo.lock_many(product_id for product_id, _ in lines)
        for product_id, quantity in lines:
            product = locked.get(product_id)
            if product is None:
                # Only reachable if the row was removed outside the ORM; the order keeps its snapshot.
                logger.warning("inventory.product_missing", product_id=str(product_id))
                continue
            self.adjust_availability(product, sign * quantity)


class ProductService:
    """Application service for catalog use-cases."""

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, principal: Principal, dto: CreateProductDTO) -> Product:
        """Create a catalog entry owned by the caller.

        Raises:
            ProductAccessDenied: the caller is a consumer.
        """
        if not (principal.is_farmer or principal.is_admin):
            raise ProductAccessDenied("Only farmers can add products.")

        product = Product(owner_id=principal.id, **dto.model_dump())
        product.status = ProductStatus.AVAILABLE
        product.apply_quantity(dto.quantity)
        product = self._repo.save(product)
        self._repo.add_history(product, product.status, principal.id, PRODUCT_ADDED_NOTE)

        logger.info(
            "product.created",
            product_id=str(product.id),
            owner_id=str(principal.id),
            category=product.category,
        )
        return product

    @transaction.atomic
    def update_product(
        self, principal: Principal, id: str, dto: UpdateProductDTO
    ) -> Product:
        """Apply a partial update.

        Raises:
            ProductNotFound: unknown product.
            ProductAccessDenied: caller is neither owner nor admin.
            InvalidProductData: the resulting subcategory does not match the category.
        """
        product = self._get_manageable(principal, id, lock=True)
        log = logger.bind(product_id=str(product.id))

        changes: Dict[str, Any] = dto.changes()
        new_quantity = changes.pop("quantity", None)
        for field, value in changes.items():
            setattr(product, field, value)

        if product.subcategory and product.subcategory not in SUBCATEGORIES.get(product.category, ()):
            raise InvalidProductData(
                f"'{product.subcategory}' is not a {product.category} subcategory.",
                code="invalid_subcategory",
            )

        toggled = None
        if new_quantity is not None:
            toggled = product.apply_quantity(new_quantity)

        product = self._repo.save(product)
        if toggled is not None:
            note = OUT_OF_STOCK_NOTE if toggled == ProductStatus.UNAVAILABLE else BACK_IN_STOCK_NOTE
            self._repo.add_history(product, toggled, product.owner_id, note)

        log.info("product.updated", fields=sorted(dto.changes()))
        return product

    @transaction.atomic
    def update_status(
        self, principal: Principal, id: str, dto: UpdateProductStatusDTO
    ) -> Product:
        """Set an explicit catalog status.

        Raises:
            ProductNotFound: unknown product.
            ProductAccessDenied: caller is neither owner nor admin.
            ProductOutOfStock: a non-``unavailable`` status for an empty product.
        """
        product = self._get_manageable(principal, id, lock=True)

        if dto.status != ProductStatus.UNAVAILABLE and product.quantity <= 0:
            raise ProductOutOfStock(
                f"Product {product.id} has no stock; it must stay unavailable."
            )

        old_status = product.status
        product.status = dto.status
        product = self._repo.save(product)
        self._repo.add_history(
            product,
            dto.status,
            principal.id,
            dto.note or f"Status changed to {dto.status}",
        )

        logger.info(
            "product.status_updated",
            product_id=str(product.id),
            old_status=old_status,
            new_status=dto.status,
        )
        return product

    @transaction.atomic
    def delete_product(self, principal: Principal, id: str) -> None:
        """Soft-delete a catalog entry.

        Raises:
            ProductNotFound: unknown product.
            ProductAccessDenied: caller is neither owner nor admin.
        """
        product = self._get_manageable(principal, id, lock=True)
        self._repo.delete(product)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_product(self, id: str) -> Product:
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        return self._repo.list(filters)

    def list_farmer_products(self, farmer_id: str) -> models.QuerySet:
        try:
            owner_id = UUID(str(farmer_id))
        except ValueError:
            return self._repo.list().none()
        return self._repo.list({"owner_id": owner_id})

    def track_product(self, tracking_id: str) -> Product:
        product = self._repo.get_by_tracking_id(tracking_id)
        if not product:
            raise ProductNotFound(
                f"No product with tracking id {tracking_id}.",
                code="tracking_id_not_found",
            )
        return product

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_manageable(self, principal: Principal, id: str, lock: bool = False) -> Product:
        product = self._repo.get_for_update(id) if lock else self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        if not can_manage_product(principal, product):
            logger.warning(
                "product.access_denied",
                product_id=str(product.id),
                principal_id=str(principal.id),
            )
            raise ProductAccessDenied("Only the owner or an admin can change this product.")
        return product
