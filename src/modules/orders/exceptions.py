"""Order domain exceptions.

Each one belongs to a taxonomy kind from ``modules.core.exceptions`` and
carries a stable ``code`` for API clients.
"""

from __future__ import annotations

from modules.core.exceptions import (
    ConflictError,
    DomainValidationError,
    NotFoundError,
    PermissionDeniedError,
)


class OrderNotFound(NotFoundError):
    """The order does not exist or is not visible to the caller."""

    code = "order_not_found"


class OrderProductNotFound(NotFoundError):
    """A product referenced by an order line does not exist."""

    code = "product_not_found"


class ProductUnavailable(DomainValidationError):
    """A product referenced by an order line is not ``available``."""

    code = "product_unavailable"


class InsufficientQuantity(DomainValidationError):
    """Requested quantity exceeds what the catalog holds."""

    code = "insufficient_quantity"


class InvalidStatusValue(DomainValidationError):
    """Status or payment status outside its enumeration."""

    code = "invalid_status"


class OrderCreationNotAllowed(PermissionDeniedError):
    code = "order_creation_not_allowed"


class TransitionNotAllowed(PermissionDeniedError):
    """The caller's role or relationship to the order does not permit the change."""

    code = "transition_not_allowed"


class OrderAlreadyFinal(ConflictError):
    """The order is ``delivered`` or ``cancelled``; nothing may change it."""

    code = "order_final"


class StatusUnchanged(ConflictError):
    """The requested status equals the current one."""

    code = "status_unchanged"


class PaymentNotPayable(ConflictError):
    """A payment intent was requested for an order that cannot be paid."""

    code = "order_not_payable"


class IdempotencyKeyReused(ConflictError):
    """The ``Idempotency-Key`` already belongs to another buyer's order."""

    code = "idempotency_key_reused"
