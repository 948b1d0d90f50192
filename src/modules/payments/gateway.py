"""Stripe adapter.

The only module that talks to the provider SDK.  Provider failures are
re-raised as payment exceptions so the service and API layers never see
``stripe`` types.
"""

from __future__ import annotations

import json
from typing import Any, Dict

import stripe
import structlog
from django.conf import settings

from modules.payments.dtos import PaymentIntentDTO
from modules.payments.exceptions import (
    InvalidWebhookPayload,
    InvalidWebhookSignature,
    PaymentProviderError,
    PaymentProviderNotConfigured,
)

logger = structlog.get_logger(__name__)


class StripeGateway:
    def __init__(self, secret_key: str, webhook_secret: str, currency: str) -> None:
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret
        self.currency = currency

    @classmethod
    def from_settings(cls) -> StripeGateway:
        return cls(
            secret_key=settings.STRIPE_SECRET_KEY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            currency=settings.PAYMENT_CURRENCY,
        )

    def create_payment_intent(self, amount: int, metadata: Dict[str, str]) -> PaymentIntentDTO:
        """Create a PaymentIntent for ``amount`` minor units.

        Raises:
            PaymentProviderNotConfigured: no secret key.
            PaymentProviderError: the provider call failed.
        """
        if not self._secret_key:
            raise PaymentProviderNotConfigured("Payment provider is not configured.")
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self._secret_key,
                amount=amount,
                currency=self.currency,
                metadata=metadata,
            )
        except stripe.StripeError as exc:
            logger.error(
                "payment.intent_failed",
                order_id=metadata.get("orderId"),
                error=str(exc.user_message or exc),
            )
            raise PaymentProviderError("Payment provider could not create the payment.") from exc

        logger.info("payment.intent_created", order_id=metadata.get("orderId"), amount=amount)
        return PaymentIntentDTO(
            payment_intent_id=intent["id"],
            client_secret=intent["client_secret"],
            amount=amount,
            currency=self.currency,
        )

    def parse_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """Verify the webhook signature and decode the event body.

        Raises:
            PaymentProviderNotConfigured: no webhook secret.
            InvalidWebhookSignature: missing, stale or mismatched signature.
        """
        if not self._webhook_secret:
            raise PaymentProviderNotConfigured("Webhook secret is not configured.")
        body = payload.decode("utf-8", errors="replace")
        try:
            stripe.WebhookSignature.verify_header(
                body,
                signature or "",
                self._webhook_secret,
                tolerance=stripe.Webhook.DEFAULT_TOLERANCE,
            )
        except stripe.SignatureVerificationError as exc:
            logger.warning("payment.webhook_signature_invalid")
            raise InvalidWebhookSignature("Invalid webhook signature.") from exc
        try:
            event = json.loads(body)
        except ValueError as exc:
            raise InvalidWebhookPayload("Webhook payload is not valid JSON.") from exc
        if not isinstance(event, dict):
            raise InvalidWebhookPayload("Webhook payload must be a JSON object.")
        return event
