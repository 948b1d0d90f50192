"""Unit tests for Order, OrderItem and OrderStatusHistory models."""

import re
from decimal import Decimal
from unittest.mock import patch

import pytest

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.models import Order, OrderItem

pytestmark = pytest.mark.unit


@pytest.fixture()
def bare_order(consumer):
    return Order.objects.create(
        buyer=consumer,
        shipping_street="ul. Krótka 2",
        shipping_city="Lublin",
        shipping_postal_code="20-001",
    )


class TestOrderDefaults:
    def test_defaults(self, bare_order):
        assert bare_order.status == OrderStatus.PENDING
        assert bare_order.payment_status == PaymentStatus.PENDING
        assert bare_order.total_price == Decimal("0.00")
        assert bare_order.carbon_footprint is None
        assert bare_order.inventory_committed is False
        assert bare_order.shipping_country == "Poland"

    def test_order_number_format(self, bare_order):
        assert re.fullmatch(r"ORD-\d{8}-[0-9A-F]{6}", bare_order.order_number)

    def test_order_number_kept_on_resave(self, bare_order):
        number = bare_order.order_number
        bare_order.save()
        assert bare_order.order_number == number

    def test_order_number_generation_gives_up_after_retries(self, consumer, bare_order):
        with patch.object(Order, "generate_order_number", return_value=bare_order.order_number):
            with pytest.raises(RuntimeError, match="unique order_number"):
                Order.objects.create(
                    buyer=consumer,
                    shipping_street="x",
                    shipping_city="y",
                    shipping_postal_code="00-001",
                )

    def test_shipping_address_dict(self, bare_order):
        assert bare_order.shipping_address == {
            "street": "ul. Krótka 2",
            "city": "Lublin",
            "postal_code": "20-001",
            "country": "Poland",
        }

    @pytest.mark.parametrize(
        "status,terminal",
        [(s, s in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)) for s in OrderStatus.values],
    )
    def test_is_terminal(self, bare_order, status, terminal):
        bare_order.status = status
        assert bare_order.is_terminal is terminal


class TestTotals:
    def test_subtotal_computed_on_save(self, bare_order, product):
        item = OrderItem.objects.create(
            order=bare_order,
            product=product,
            quantity=Decimal("2.5"),
            price_at_purchase=Decimal("3.99"),
        )
        assert item.subtotal == Decimal("9.98")

    def test_total_is_rounded_sum_of_lines(self, bare_order, product, make_product):
        OrderItem.objects.create(
            order=bare_order, product=product, quantity=Decimal("3"), price_at_purchase=Decimal("10.00")
        )
        OrderItem.objects.create(
            order=bare_order,
            product=make_product(name="Miód"),
            quantity=Decimal("1.333"),
            price_at_purchase=Decimal("7.50"),
        )
        # 30.00 + 9.9975
        assert bare_order.recalculate_total() == Decimal("40.00")

    def test_compute_total_of_nothing(self):
        assert Order.compute_total([]) == Decimal("0.00")

    def test_stock_lines(self, pending_order, product):
        assert pending_order.stock_lines() == [(product.id, Decimal("3.000"))]


class TestStatusHistory:
    def test_first_entry_is_pending_by_buyer(self, pending_order, consumer):
        first = pending_order.status_history.first()
        assert first.new_status == OrderStatus.PENDING
        assert first.old_status is None
        assert first.actor_id == consumer.id
        assert first.note == "Order created"
