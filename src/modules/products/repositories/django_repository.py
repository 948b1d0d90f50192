"""Django ORM implementation of the Product repository.

Look-ups follow the null-object convention: unknown, soft-deleted or
malformed ids give ``None``; the Service Layer decides what that means.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.products.models import Product, ProductStatusHistory
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def _base_queryset(self) -> models.QuerySet:
        return Product.objects.alive().select_related("owner")

    def get_by_id(self, id: str) -> Optional[Product]:
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """Alive products; ``filters`` are plain ORM look-ups, e.g. ``{"owner_id": ...}``."""
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def get_for_update(self, id: str) -> Optional[Product]:
        try:
            return (
                Product.objects.select_for_update()
                .select_related("owner")
                .filter(id=id, deleted_at__isnull=True)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def lock_many(self, ids: Iterable[UUID]) -> Dict[UUID, Product]:
        # Includes soft-deleted rows: released stock still belongs to them.
        products = (
            Product.objects.select_for_update()
            .select_related("owner")
            .filter(id__in=set(ids))
            .order_by("pk")
        )
        return {product.id: product for product in products}

    def get_by_tracking_id(self, tracking_id: str) -> Optional[Product]:
        return (
            self._base_queryset()
            .prefetch_related("status_history")
            .filter(tracking_id=tracking_id.strip().upper())
            .first()
        )

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info(
            "product.saved",
            product_id=str(entity.id),
            status=entity.status,
            quantity=str(entity.quantity),
        )
        return entity

    def add_history(
        self,
        product: Product,
        status: str,
        actor_id: Optional[UUID],
        note: str = "",
    ) -> ProductStatusHistory:
        entry = ProductStatusHistory.objects.create(
            product=product,
            status=status,
            actor_id=actor_id,
            note=note,
        )
        logger.info(
            "product.history_added",
            product_id=str(product.id),
            status=status,
            note=note,
        )
        return entry

    @transaction.atomic
    def delete(self, product: Product) -> None:
        product.delete()
        logger.info("product.soft_deleted", product_id=str(product.id))
