"""Generic repository interface.

``IRepository[T]`` is the base contract every aggregate repository
extends.  Services depend on these abstractions; only the
``django_repository`` modules touch the ORM.  Look-ups follow the
null-object convention: a missing or malformed id yields ``None``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, TypeVar

from django.db import models

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """Return a queryset of entities matching ``filters``."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (create or update) an entity."""
