"""Order repository interface.

Extends ``IRepository[Order]`` with what the Order aggregate needs:
creation with items, row locking for transitions, status history and
idempotency-key look-up.  The Service Layer depends only on this contract.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def create(self, data: Dict[str, Any], items: List[Dict[str, Any]]) -> Order:
        """Create an order and its lines; ``total_price`` is computed from the lines."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with buyer, items (with product) and history loaded."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Same as ``get_by_id`` but holding a row lock on the order."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """Orders with relations prefetched."""

    @abstractmethod
    def add_history(
        self,
        order: Order,
        new_status: str,
        actor_id: Optional[UUID],
        note: str = "",
        old_status: Optional[str] = None,
    ) -> OrderStatusHistory:
        """Append a record to the order's audit trail."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""
