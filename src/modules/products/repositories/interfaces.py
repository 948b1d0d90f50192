"""Product repository interface.

Extends ``IRepository[Product]`` with the look-ups the catalog and the
order workflow need: row locking for inventory adjustments, status
history, tracking codes and per-farmer listings.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional
from uuid import UUID

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product, ProductStatusHistory


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Product]":
        """Alive products matching ``filters``."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Product]:
        """Retrieve a product with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def lock_many(self, ids: Iterable[UUID]) -> Dict[UUID, Product]:
        """Lock several products in primary-key order (deadlock-free)."""

    @abstractmethod
    def get_by_tracking_id(self, tracking_id: str) -> Optional[Product]:
        """Retrieve a product by its public tracking code."""

    @abstractmethod
    def add_history(
        self,
        product: Product,
        status: str,
        actor_id: Optional[UUID],
        note: str = "",
    ) -> ProductStatusHistory:
        """Append an entry to the product's status history."""

    @abstractmethod
    def delete(self, product: Product) -> None:
        """Soft-delete a product."""
