"""Payment domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import (
    DomainValidationError,
    ExternalDependencyError,
    PermissionDeniedError,
)


class PaymentProviderError(ExternalDependencyError):
    """The payment provider rejected or failed the request."""

    code = "payment_provider_error"


class PaymentProviderNotConfigured(ExternalDependencyError):
    code = "payment_provider_not_configured"


class InvalidWebhookSignature(DomainValidationError):
    """The ``Stripe-Signature`` header does not match the payload."""

    code = "invalid_signature"


class PaymentNotAllowed(PermissionDeniedError):
    """Only the order's buyer may start a payment."""

    code = "payment_not_allowed"


class InvalidWebhookPayload(DomainValidationError):
    code = "invalid_payload"
