"""Catalog domain exceptions.

Raised by the Service Layer; the API exception handler maps each
taxonomy kind onto its HTTP status.
"""

from __future__ import annotations

from modules.core.exceptions import (
    DomainValidationError,
    NotFoundError,
    PermissionDeniedError,
)


class ProductNotFound(NotFoundError):
    """The product does not exist or has been soft-deleted."""

    code = "product_not_found"


class ProductAccessDenied(PermissionDeniedError):
    """Only the owning farmer (or an admin) may change a catalog entry."""

    code = "product_access_denied"


class ProductOutOfStock(DomainValidationError):
    """A status other than ``unavailable`` was requested for an empty product."""

    code = "product_out_of_stock"


class InvalidProductData(DomainValidationError):
    """Field combination rejected by catalog rules (e.g. foreign subcategory)."""

    code = "invalid_product"
