"""Catalog models.

Business rules implemented:
- Price must be greater than zero; quantity can never be negative.
- ``quantity <= 0`` implies ``status == unavailable``; a product coming
  back into stock from ``unavailable`` becomes ``available`` again
  (``Product.apply_quantity``).  Every status change is recorded in
  ``ProductStatusHistory``.
- Subcategory must belong to the category.
- ``is_certified`` mirrors whether any certificate reference is attached.
- Products are soft-deleted so order lines keep their reference.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Optional, Tuple

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import BaseModel, SoftDeleteModel
from modules.products.constants import (
    QUANTITY_STEP,
    SUBCATEGORIES,
    Category,
    ProductStatus,
    Unit,
)

logger = structlog.get_logger(__name__)


def generate_tracking_id() -> str:
    """Public tracking code shown to buyers: ``TRK-XXXXXXXXXX``."""
    return f"TRK-{secrets.token_hex(5).upper()}"


class Product(SoftDeleteModel):
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="products",
    )
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    unit = models.CharField(max_length=10, choices=Unit.choices, default=Unit.KILOGRAM)
    category = models.CharField(max_length=30, choices=Category.choices)
    subcategory = models.CharField(max_length=30, blank=True, default="")
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.AVAILABLE,
    )
    images = models.JSONField(default=list, blank=True)
    certificates = models.JSONField(default=list, blank=True)
    is_certified = models.BooleanField(default=False)
    average_rating = models.DecimalField(
        max_digits=2,
        decimal_places=1,
        default=Decimal("0.0"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("5"))],
    )
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    harvest_date = models.DateField(null=True, blank=True)
    tracking_id = models.CharField(
        max_length=20, unique=True, default=generate_tracking_id, editable=False
    )

    class Meta:
        db_table = "products"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
            models.Index(fields=["category", "subcategory"], name="products_category_idx"),
            models.Index(fields=["owner"], name="products_owner_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(price__gt=0),
                name="products_price_positive",
            ),
            models.CheckConstraint(
                check=models.Q(quantity__gte=0),
                name="products_quantity_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # Availability invariant
    # ------------------------------------------------------------------

    def apply_quantity(self, new_quantity: Decimal) -> Optional[str]:
        """Set ``quantity`` and re-establish the availability invariant.

        Returns the new status when the change toggled it, otherwise ``None``.
        """
        new_quantity = Decimal(new_quantity).quantize(QUANTITY_STEP)
        self.quantity = new_quantity
        if new_quantity <= 0 and self.status != ProductStatus.UNAVAILABLE:
            self.status = ProductStatus.UNAVAILABLE
            return self.status
        if new_quantity > 0 and self.status == ProductStatus.UNAVAILABLE:
            self.status = ProductStatus.AVAILABLE
            return self.status
        return None

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        """Product location, falling back to the owner's."""
        if self.latitude is not None and self.longitude is not None:
            return (self.latitude, self.longitude)
        return self.owner.coordinates

    # ------------------------------------------------------------------
    # Validation / persistence
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        allowed = SUBCATEGORIES.get(self.category, ())
        if self.subcategory and self.subcategory not in allowed:
            raise ValidationError(
                {"subcategory": f"'{self.subcategory}' is not a {self.category} subcategory."}
            )

    def save(self, *args, **kwargs) -> None:
        self.is_certified = bool(self.certificates)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "certificates" in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["is_certified"]
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name} ({self.quantity} {self.unit}, {self.status})"


class ProductStatusHistory(BaseModel):
    """Append-only log of catalog status changes.

    ``actor`` is ``None`` only when the owner account no longer exists.
    """

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    status = models.CharField(max_length=20, choices=ProductStatus.choices)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    note = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "product_status_history"
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.product_id}: {self.status}"
