"""The calling principal as seen by services: ``{id, email, role}``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from modules.accounts.constants import UserRole


@dataclass(frozen=True)
class Principal:
    id: Optional[UUID]
    email: str
    role: str

    @classmethod
    def from_user(cls, user: Any) -> Principal:
        return cls(id=user.id, email=user.email, role=user.effective_role)

    @classmethod
    def system(cls) -> Principal:
        """Privileged actor for provider callbacks; history rows record no user."""
        return cls(id=None, email="", role=UserRole.ADMIN)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_consumer(self) -> bool:
        return self.role == UserRole.CONSUMER

    @property
    def is_farmer(self) -> bool:
        return self.role == UserRole.FARMER
