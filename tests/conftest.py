import hashlib
import hmac
import json
import time
from decimal import Decimal

import pytest

from django.contrib.auth import get_user_model

from rest_framework.test import APIClient

from modules.accounts.constants import UserRole
from modules.accounts.principal import Principal
from modules.orders.dtos import CreateOrderDTO
from modules.orders.views import build_order_service
from modules.products.constants import Category, ProductStatus
from modules.products.models import Product

User = get_user_model()

# Kraków and Warsaw.
KRAKOW = (50.0647, 19.9450)
WARSAW = (52.2297, 21.0122)

SHIPPING_ADDRESS = {
    "street": "ul. Floriańska 1",
    "city": "Kraków",
    "postal_code": "31-019",
}


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def _make_user(username, role, coordinates=None, **extra):
    latitude, longitude = coordinates or (None, None)
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="testpass123",
        role=role,
        latitude=latitude,
        longitude=longitude,
        **extra,
    )


@pytest.fixture()
def consumer():
    return _make_user("consumer", UserRole.CONSUMER, WARSAW)


@pytest.fixture()
def other_consumer():
    return _make_user("other_consumer", UserRole.CONSUMER, WARSAW)


@pytest.fixture()
def farmer():
    return _make_user("farmer", UserRole.FARMER, KRAKOW)


@pytest.fixture()
def other_farmer():
    return _make_user("other_farmer", UserRole.FARMER, KRAKOW)


@pytest.fixture()
def admin_user():
    return _make_user("admin", UserRole.ADMIN)


@pytest.fixture()
def client_for():
    """Build an APIClient force-authenticated as ``user``."""

    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_product(farmer):
    def _make(owner=None, **overrides):
        data = {
            "owner": owner or farmer,
            "name": "Jabłka Szampion",
            "price": Decimal("10.00"),
            "quantity": Decimal("20"),
            "category": Category.FRUITS,
            "subcategory": "apples",
            "status": ProductStatus.AVAILABLE,
        }
        data.update(overrides)
        return Product.objects.create(**data)

    return _make


@pytest.fixture()
def product(make_product):
    return make_product()


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    return build_order_service()


@pytest.fixture()
def place_order(order_service):
    """Check out ``[(product, quantity), ...]`` as ``buyer`` through the service."""

    def _place(buyer, lines, **extra):
        dto = CreateOrderDTO.model_validate(
            {
                "items": [
                    {"product_id": str(p.id), "quantity": str(quantity)}
                    for p, quantity in lines
                ],
                "shipping_address": SHIPPING_ADDRESS,
                **extra,
            }
        )
        order, _ = order_service.create_order(Principal.from_user(buyer), dto)
        return order

    return _place


@pytest.fixture()
def pending_order(place_order, consumer, product):
    """Consumer's order for 3 units of ``product`` at 10.00."""
    return place_order(consumer, [(product, 3)])


@pytest.fixture()
def shipping_address():
    return dict(SHIPPING_ADDRESS)


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

WEBHOOK_SECRET = "whsec_testsecret"


@pytest.fixture()
def signed_webhook():
    """Serialize ``event`` and sign it the way the provider does.

    Returns ``(body, signature_header)``.
    """

    def _sign(event, secret=WEBHOOK_SECRET, timestamp=None):
        body = json.dumps(event)
        timestamp = int(time.time()) if timestamp is None else timestamp
        digest = hmac.new(
            secret.encode(), f"{timestamp}.{body}".encode(), hashlib.sha256
        ).hexdigest()
        return body, f"t={timestamp},v1={digest}"

    return _sign


@pytest.fixture()
def payment_event():
    """Build a provider ``payment_intent.*`` event for ``order``."""

    def _event(order, event_type="payment_intent.succeeded", intent_id="pi_test_123", **extra):
        intent = {
            "id": intent_id,
            "object": "payment_intent",
            "metadata": {"orderId": str(order.id), "buyerId": str(order.buyer_id)},
            **extra,
        }
        return {"id": "evt_test_1", "type": event_type, "data": {"object": intent}}

    return _event
