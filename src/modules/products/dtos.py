"""Catalog DTOs for the Service Layer (pydantic v2, frozen).

- ``CreateProductDTO``: input for product creation.
- ``UpdateProductDTO``: partial update; ``owner`` is deliberately absent.
- ``UpdateProductStatusDTO``: explicit catalog status change with a note.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.products.constants import QUANTITY_PLACES, SUBCATEGORIES, Category, ProductStatus, Unit


def _check_subcategory(category: Optional[str], subcategory: Optional[str]) -> None:
    if category and subcategory and subcategory not in SUBCATEGORIES.get(category, ()):
        raise ValueError(f"'{subcategory}' is not a {category} subcategory.")


class CreateProductDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=3, max_length=100)
    description: str = Field(default="", max_length=1000)
    price: Decimal = Field(gt=0, decimal_places=2)
    quantity: Decimal = Field(ge=0, max_digits=12, decimal_places=QUANTITY_PLACES)
    unit: Unit = Unit.KILOGRAM
    category: Category
    subcategory: str = ""
    images: List[str] = Field(default_factory=list)
    certificates: List[str] = Field(default_factory=list)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    harvest_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name must not be blank.")
        return v.strip()

    @model_validator(mode="after")
    def subcategory_matches_category(self):
        _check_subcategory(self.category, self.subcategory)
        return self


class UpdateProductDTO(BaseModel):
    """Only supplied (non-``None``) fields are applied."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    price: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    quantity: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=QUANTITY_PLACES)
    unit: Optional[Unit] = None
    category: Optional[Category] = None
    subcategory: Optional[str] = None
    images: Optional[List[str]] = None
    certificates: Optional[List[str]] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    harvest_date: Optional[date] = None

    @model_validator(mode="after")
    def subcategory_matches_category(self):
        _check_subcategory(self.category, self.subcategory)
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class UpdateProductStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ProductStatus
    note: str = Field(default="", max_length=255)
