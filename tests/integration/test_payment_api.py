"""Integration tests for the payment intent and provider webhook endpoints."""

from __future__ import annotations

import time
from decimal import Decimal
from unittest.mock import patch

import pytest
import stripe

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.models import Order
from modules.products.models import Product

pytestmark = pytest.mark.integration

INTENT_URL = "/api/v1/payments/intent/"
WEBHOOK_URL = "/api/v1/payments/webhook/"


class TestPaymentIntent:
    def test_buyer_receives_client_secret(self, client_for, consumer, pending_order):
        intent = {"id": "pi_abc", "client_secret": "pi_abc_secret_xyz"}
        with patch("stripe.PaymentIntent.create", return_value=intent) as create:
            response = client_for(consumer).post(
                INTENT_URL, {"order_id": str(pending_order.id)}, format="json"
            )

        assert response.status_code == 201
        assert response.json() == {
            "payment_intent_id": "pi_abc",
            "client_secret": "pi_abc_secret_xyz",
            "amount": 3000,
            "currency": "pln",
        }
        assert create.call_args.kwargs["metadata"]["orderId"] == str(pending_order.id)
        assert Order.objects.get(pk=pending_order.pk).payment_id == "pi_abc"

    def test_provider_failure_is_502(self, client_for, consumer, pending_order):
        client = client_for(consumer)
        # 5xx responses also fire got_request_exception, which the test client re-raises.
        client.raise_request_exception = False
        with patch("stripe.PaymentIntent.create", side_effect=stripe.APIConnectionError("down")):
            response = client.post(
                INTENT_URL, {"order_id": str(pending_order.id)}, format="json"
            )
        assert response.status_code == 502
        assert response.json()["errors"][0]["code"] == "payment_provider_error"

    def test_paid_order_is_conflict(self, client_for, consumer, pending_order):
        client = client_for(consumer)
        client.patch(
            f"/api/v1/orders/{pending_order.id}/payment/", {"payment_status": "completed"}, format="json"
        )
        response = client.post(INTENT_URL, {"order_id": str(pending_order.id)}, format="json")
        assert response.status_code == 409

    def test_requires_authentication(self, api_client, pending_order):
        response = api_client.post(INTENT_URL, {"order_id": str(pending_order.id)}, format="json")
        assert response.status_code == 401

    def test_invalid_order_id(self, client_for, consumer):
        response = client_for(consumer).post(INTENT_URL, {"order_id": "nope"}, format="json")
        assert response.status_code == 400

    def test_missing_secret_key_is_502(self, client_for, consumer, pending_order, settings):
        settings.STRIPE_SECRET_KEY = ""
        client = client_for(consumer)
        client.raise_request_exception = False
        response = client.post(INTENT_URL, {"order_id": str(pending_order.id)}, format="json")
        assert response.status_code == 502
        assert response.json()["errors"][0]["code"] == "payment_provider_not_configured"


class TestWebhook:
    def _post(self, api_client, body, signature):
        return api_client.post(
            WEBHOOK_URL, data=body, content_type="application/json", HTTP_STRIPE_SIGNATURE=signature
        )

    def test_succeeded_event_pays_order(self, api_client, signed_webhook, payment_event, pending_order, product):
        body, signature = signed_webhook(payment_event(pending_order))

        response = self._post(api_client, body, signature)

        assert response.status_code == 200
        assert response.json() == {"received": True}
        order = Order.objects.get(pk=pending_order.pk)
        assert order.status == OrderStatus.PAID
        assert order.payment_status == PaymentStatus.COMPLETED
        assert Product.objects.get(pk=product.pk).quantity == Decimal("17")

    def test_failed_event(self, api_client, signed_webhook, payment_event, pending_order):
        body, signature = signed_webhook(
            payment_event(
                pending_order,
                "payment_intent.payment_failed",
                last_payment_error={"message": "Card declined"},
            )
        )
        assert self._post(api_client, body, signature).status_code == 200
        assert Order.objects.get(pk=pending_order.pk).payment_status == PaymentStatus.FAILED

    def test_redelivered_event_is_acknowledged(self, api_client, signed_webhook, payment_event, pending_order, product):
        body, signature = signed_webhook(payment_event(pending_order))
        self._post(api_client, body, signature)

        response = self._post(api_client, body, signature)

        assert response.status_code == 200
        assert Product.objects.get(pk=product.pk).quantity == Decimal("17")

    def test_invalid_signature(self, api_client, signed_webhook, payment_event, pending_order):
        body, signature = signed_webhook(payment_event(pending_order), secret="whsec_attacker")

        response = self._post(api_client, body, signature)

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "invalid_signature"
        assert Order.objects.get(pk=pending_order.pk).status == OrderStatus.PENDING

    def test_missing_signature(self, api_client):
        response = api_client.post(WEBHOOK_URL, data="{}", content_type="application/json")
        assert response.status_code == 400

    def test_unknown_event_type_acknowledged(self, api_client, signed_webhook, payment_event, pending_order):
        body, signature = signed_webhook(payment_event(pending_order, "customer.created"))
        assert self._post(api_client, body, signature).status_code == 200
        assert Order.objects.get(pk=pending_order.pk).status == OrderStatus.PENDING

    def test_webhook_ignores_bearer_token(self, api_client, signed_webhook, payment_event, pending_order):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer garbage")
        body, signature = signed_webhook(payment_event(pending_order))
        assert self._post(api_client, body, signature).status_code == 200

    def test_replayed_old_event_is_rejected(self, api_client, signed_webhook, payment_event, pending_order):
        month_ago = int(time.time()) - 30 * 24 * 3600
        body, signature = signed_webhook(payment_event(pending_order), timestamp=month_ago)

        response = self._post(api_client, body, signature)

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "invalid_signature"
        order = Order.objects.get(pk=pending_order.pk)
        assert order.payment_status == PaymentStatus.PENDING
        assert order.status == OrderStatus.PENDING
