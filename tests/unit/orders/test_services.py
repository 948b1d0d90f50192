"""Unit tests for checkout and the read side of ``OrderService``."""

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.accounts.principal import Principal
from modules.core.exceptions import DomainValidationError, PermissionDeniedError
from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import (
    IdempotencyKeyReused,
    InsufficientQuantity,
    OrderCreationNotAllowed,
    OrderNotFound,
    OrderProductNotFound,
    ProductUnavailable,
)
from modules.orders.models import Order
from modules.products.constants import Category, ProductStatus

pytestmark = pytest.mark.unit


def checkout_dto(lines, **extra):
    return CreateOrderDTO.model_validate(
        {
            "items": [{"product_id": str(pid), "quantity": qty} for pid, qty in lines],
            "shipping_address": {"street": "ul. Floriańska 1", "city": "Kraków", "postal_code": "31-019"},
            **extra,
        }
    )


class TestCreateOrder:
    def test_snapshots_price_and_totals(self, order_service, consumer, product, make_product):
        honey = make_product(name="Miód lipowy", price=Decimal("45.00"), category=Category.HONEY, subcategory="linden")

        order, created = order_service.create_order(
            Principal.from_user(consumer), checkout_dto([(product.id, 3), (honey.id, 1)])
        )

        assert created is True
        assert order.status == OrderStatus.PENDING
        assert order.buyer_id == consumer.id
        assert order.total_price == Decimal("75.00")
        assert [item.price_at_purchase for item in order.items.all()] == [
            Decimal("10.00"),
            Decimal("45.00"),
        ]

    def test_price_change_after_checkout_keeps_snapshot(self, pending_order, product):
        product.price = Decimal("99.00")
        product.save()
        order = Order.objects.get(pk=pending_order.pk)
        assert order.items.get().price_at_purchase == Decimal("10.00")
        assert order.total_price == Decimal("30.00")

    def test_carbon_footprint_computed(self, pending_order):
        # Warsaw buyer, Kraków farmer: ~252 km * 0.1 * 3 kg + 3 kg * 0.5
        assert pending_order.carbon_footprint == pytest.approx(Decimal("77.2"), abs=Decimal("1"))

    def test_carbon_footprint_unknown_without_buyer_location(
        self, order_service, admin_user, product
    ):
        order, _ = order_service.create_order(
            Principal.from_user(admin_user), checkout_dto([(product.id, 1)])
        )
        assert order.carbon_footprint is None

    def test_product_location_overrides_owner(self, order_service, consumer, make_product):
        local = make_product(latitude=52.2297, longitude=21.0122)
        order, _ = order_service.create_order(
            Principal.from_user(consumer), checkout_dto([(local.id, 2)])
        )
        assert order.carbon_footprint == Decimal("1.00")

    def test_records_order_created_event(self, pending_order, consumer):
        event = OutboxEvent.objects.get(event_type="OrderCreated")
        assert event.aggregate_id == str(pending_order.id)
        assert event.payload["buyer_id"] == str(consumer.id)
        assert event.payload["total_price"] == "30.00"
        assert event.topic == "orders"

    def test_farmer_cannot_order(self, order_service, farmer, product):
        with pytest.raises(OrderCreationNotAllowed):
            order_service.create_order(Principal.from_user(farmer), checkout_dto([(product.id, 1)]))

    def test_unknown_product(self, order_service, consumer):
        with pytest.raises(OrderProductNotFound):
            order_service.create_order(Principal.from_user(consumer), checkout_dto([(uuid4(), 1)]))

    def test_soft_deleted_product_is_not_found(self, order_service, consumer, product):
        product.delete()
        with pytest.raises(OrderProductNotFound):
            order_service.create_order(Principal.from_user(consumer), checkout_dto([(product.id, 1)]))

    @pytest.mark.parametrize("status", [ProductStatus.UNAVAILABLE, ProductStatus.PREPARING])
    def test_product_not_available(self, order_service, consumer, make_product, status):
        item = make_product(status=status)
        with pytest.raises(ProductUnavailable):
            order_service.create_order(Principal.from_user(consumer), checkout_dto([(item.id, 1)]))

    def test_insufficient_quantity(self, order_service, consumer, product):
        with pytest.raises(InsufficientQuantity, match="requested 21"):
            order_service.create_order(Principal.from_user(consumer), checkout_dto([(product.id, 21)]))

    def test_failure_creates_nothing(self, order_service, consumer, product):
        with pytest.raises(OrderProductNotFound):
            order_service.create_order(
                Principal.from_user(consumer), checkout_dto([(product.id, 1), (uuid4(), 1)])
            )
        assert Order.objects.count() == 0
        assert OutboxEvent.objects.count() == 0


class TestIdempotency:
    def test_replay_returns_existing_order(self, order_service, consumer, product):
        principal = Principal.from_user(consumer)
        first, created = order_service.create_order(
            principal, checkout_dto([(product.id, 1)], idempotency_key="key-1")
        )
        again, replayed_created = order_service.create_order(
            principal, checkout_dto([(product.id, 5)], idempotency_key="key-1")
        )

        assert created is True
        assert replayed_created is False
        assert again.id == first.id
        assert Order.objects.count() == 1

    def test_key_of_another_buyer_is_rejected(self, order_service, consumer, other_consumer, product):
        order_service.create_order(
            Principal.from_user(consumer), checkout_dto([(product.id, 1)], idempotency_key="shared")
        )
        with pytest.raises(IdempotencyKeyReused):
            order_service.create_order(
                Principal.from_user(other_consumer),
                checkout_dto([(product.id, 1)], idempotency_key="shared"),
            )


class TestQueries:
    def test_get_order_hides_foreign_orders(self, order_service, pending_order, other_consumer):
        with pytest.raises(OrderNotFound):
            order_service.get_order(Principal.from_user(other_consumer), str(pending_order.id))

    def test_get_order_malformed_id(self, order_service, consumer):
        with pytest.raises(OrderNotFound):
            order_service.get_order(Principal.from_user(consumer), "not-a-uuid")

    def test_invoice(self, order_service, pending_order, consumer):
        invoice = order_service.get_invoice(Principal.from_user(consumer), str(pending_order.id))

        assert invoice.invoice_number == "INV-" + pending_order.order_number[4:]
        assert invoice.total == Decimal("30.00")
        assert invoice.buyer_email == consumer.email
        assert invoice.shipping_address["postal_code"] == "31-019"
        assert [(line.quantity, line.unit_price, line.line_total) for line in invoice.lines] == [
            (Decimal("3.000"), Decimal("10.00"), Decimal("30.00"))
        ]

    def test_farmer_orders_reduced_to_own_lines(
        self, order_service, place_order, consumer, farmer, other_farmer, product, make_product
    ):
        foreign = make_product(owner=other_farmer, name="Ser", price=Decimal("18.00"))
        place_order(consumer, [(product, 2), (foreign, 1)])

        queryset, farmer_id = order_service.farmer_orders(Principal.from_user(farmer))

        assert farmer_id == farmer.id
        from modules.orders.dtos import FarmerOrderDTO

        views = [FarmerOrderDTO.from_entity(order, farmer_id) for order in queryset]
        assert len(views) == 1
        assert [item.product_id for item in views[0].items] == [product.id]
        assert views[0].farmer_total == Decimal("20.00")

    def test_admin_farmer_orders_needs_valid_id(self, order_service, admin_user, farmer):
        admin = Principal.from_user(admin_user)
        _, farmer_id = order_service.farmer_orders(admin, str(farmer.id))
        assert farmer_id == farmer.id
        with pytest.raises(DomainValidationError):
            order_service.farmer_orders(admin, "nope")

    def test_consumer_has_no_farmer_view(self, order_service, consumer):
        with pytest.raises(PermissionDeniedError):
            order_service.farmer_orders(Principal.from_user(consumer))
