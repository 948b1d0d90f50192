"""User repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from modules.accounts.models import User


class IUserRepository(ABC):
    @abstractmethod
    def get_by_id(self, id: str) -> Optional[User]:
        """Retrieve an active user by primary key."""
