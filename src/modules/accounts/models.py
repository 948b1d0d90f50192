"""Marketplace user.

Identity is owned by Django's auth framework; this model only adds what
the order workflow reads: the role and an optional location used for
carbon-footprint estimates.
"""

from __future__ import annotations

from typing import Optional, Tuple

import uuid6
from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.accounts.constants import UserRole


class User(AbstractUser):
    id = models.UUIDField(primary_key=True, default=uuid6.uuid7, editable=False)
    email = models.EmailField(unique=True)
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.CONSUMER,
    )
    latitude = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(-90), MaxValueValidator(90)],
    )
    longitude = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(-180), MaxValueValidator(180)],
    )
    address = models.CharField(max_length=255, blank=True, default="")
    phone_number = models.CharField(max_length=20, blank=True, default="")

    class Meta:
        db_table = "users"
        ordering = ["username"]
        indexes = [models.Index(fields=["role"], name="users_role_idx")]

    @property
    def effective_role(self) -> str:
        return UserRole.ADMIN if self.is_superuser else self.role

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        """``(latitude, longitude)`` or ``None`` when the location is unknown."""
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)

    def __str__(self) -> str:
        return f"{self.username} ({self.effective_role})"
