"""Integration tests for the ``Idempotency-Key`` header on checkout."""

import pytest

from modules.orders.models import Order

pytestmark = pytest.mark.integration


@pytest.fixture()
def payload(product, shipping_address):
    return {
        "items": [{"product_id": str(product.id), "quantity": 2}],
        "shipping_address": shipping_address,
    }


def test_same_key_returns_same_order(client_for, consumer, payload):
    client = client_for(consumer)

    first = client.post("/api/v1/orders/", payload, format="json", HTTP_IDEMPOTENCY_KEY="abc-123")
    second = client.post("/api/v1/orders/", payload, format="json", HTTP_IDEMPOTENCY_KEY="abc-123")

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert Order.objects.count() == 1


def test_without_key_each_request_creates(client_for, consumer, payload):
    client = client_for(consumer)
    client.post("/api/v1/orders/", payload, format="json")
    client.post("/api/v1/orders/", payload, format="json")
    assert Order.objects.count() == 2


def test_key_belongs_to_its_buyer(client_for, consumer, other_consumer, payload):
    client_for(consumer).post("/api/v1/orders/", payload, format="json", HTTP_IDEMPOTENCY_KEY="mine")

    response = client_for(other_consumer).post(
        "/api/v1/orders/", payload, format="json", HTTP_IDEMPOTENCY_KEY="mine"
    )

    assert response.status_code == 409
    assert response.json()["errors"][0]["code"] == "idempotency_key_reused"
