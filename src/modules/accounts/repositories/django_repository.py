from __future__ import annotations

from typing import Optional

from django.core.exceptions import ValidationError

from modules.accounts.models import User
from modules.accounts.repositories.interfaces import IUserRepository


class UserDjangoRepository(IUserRepository):
    def get_by_id(self, id: str) -> Optional[User]:
        """Returns ``None`` for unknown, inactive or malformed ids."""
        try:
            return User.objects.filter(id=id, is_active=True).first()
        except (ValueError, ValidationError):
            return None
