"""Unit tests for order status transitions through ``OrderService``."""

from decimal import Decimal

import pytest

from modules.accounts.principal import Principal
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.dtos import UpdateOrderStatusDTO, UpdatePaymentStatusDTO
from modules.orders.exceptions import (
    InvalidStatusValue,
    OrderAlreadyFinal,
    OrderNotFound,
    StatusUnchanged,
    TransitionNotAllowed,
)
from modules.orders.models import OrderStatusHistory
from modules.products.models import Product

pytestmark = pytest.mark.unit


@pytest.fixture()
def move(order_service):
    def _move(user, order, status, note=""):
        return order_service.update_status(
            Principal.from_user(user), str(order.id), UpdateOrderStatusDTO(status=status, note=note)
        )

    return _move


@pytest.fixture()
def paid_order(order_service, pending_order, consumer):
    return order_service.update_payment_status(
        Principal.from_user(consumer),
        str(pending_order.id),
        UpdatePaymentStatusDTO(payment_status=PaymentStatus.COMPLETED),
    )


def stock(product):
    return Product.objects.get(pk=product.pk).quantity


class TestFarmerFlow:
    def test_cannot_skip_paid(self, move, pending_order, farmer):
        with pytest.raises(TransitionNotAllowed):
            move(farmer, pending_order, OrderStatus.PROCESSING)

    def test_pending_to_shipped_rejected(self, move, pending_order, farmer):
        with pytest.raises(TransitionNotAllowed):
            move(farmer, pending_order, OrderStatus.SHIPPED)

    def test_forward_steps(self, move, paid_order, farmer):
        order = move(farmer, paid_order, OrderStatus.PROCESSING)
        assert order.status == OrderStatus.PROCESSING
        order = move(farmer, order, OrderStatus.SHIPPED)
        assert order.status == OrderStatus.SHIPPED
        order = move(farmer, order, OrderStatus.DELIVERED)
        assert order.status == OrderStatus.DELIVERED
        assert order.delivery_date is not None

    def test_no_backward_step(self, move, paid_order, farmer):
        order = move(farmer, paid_order, OrderStatus.PROCESSING)
        with pytest.raises(TransitionNotAllowed):
            move(farmer, order, OrderStatus.PAID)

    def test_farmer_without_item_sees_not_found(self, move, paid_order, other_farmer):
        with pytest.raises(OrderNotFound):
            move(other_farmer, paid_order, OrderStatus.PROCESSING)


class TestConsumerFlow:
    def test_cannot_mark_delivered_from_pending(self, move, pending_order, consumer):
        with pytest.raises(TransitionNotAllowed):
            move(consumer, pending_order, OrderStatus.DELIVERED)

    def test_confirms_delivery_from_shipped(self, move, paid_order, consumer, farmer):
        order = move(farmer, paid_order, OrderStatus.PROCESSING)
        order = move(farmer, order, OrderStatus.SHIPPED)

        order = move(consumer, order, OrderStatus.DELIVERED)

        assert order.status == OrderStatus.DELIVERED
        assert order.delivery_date is not None

    def test_second_delivery_confirmation_is_rejected(self, move, paid_order, consumer, farmer):
        order = move(farmer, paid_order, OrderStatus.PROCESSING)
        order = move(farmer, order, OrderStatus.SHIPPED)
        order = move(consumer, order, OrderStatus.DELIVERED)

        with pytest.raises(OrderAlreadyFinal):
            move(consumer, order, OrderStatus.DELIVERED)

    def test_other_consumer_sees_not_found(self, move, pending_order, other_consumer):
        with pytest.raises(OrderNotFound):
            move(other_consumer, pending_order, OrderStatus.CANCELLED)


class TestAdminOverride:
    def test_admin_may_skip_states(self, move, pending_order, admin_user):
        order = move(admin_user, pending_order, OrderStatus.SHIPPED)
        assert order.status == OrderStatus.SHIPPED

    def test_admin_cannot_leave_terminal_state(self, move, pending_order, admin_user):
        order = move(admin_user, pending_order, OrderStatus.CANCELLED)
        with pytest.raises(OrderAlreadyFinal):
            move(admin_user, order, OrderStatus.PENDING)

    def test_same_status_is_conflict(self, move, pending_order, admin_user):
        with pytest.raises(StatusUnchanged):
            move(admin_user, pending_order, OrderStatus.PENDING)

    def test_unknown_status_value(self, move, pending_order, admin_user):
        with pytest.raises(InvalidStatusValue):
            move(admin_user, pending_order, "lost")

    def test_admin_into_processing_commits_stock(self, move, pending_order, admin_user, product):
        order = move(admin_user, pending_order, OrderStatus.PROCESSING)
        assert order.inventory_committed is True
        assert stock(product) == Decimal("17")


class TestHistory:
    def test_default_note(self, move, paid_order, farmer):
        move(farmer, paid_order, OrderStatus.PROCESSING)
        entry = OrderStatusHistory.objects.filter(order=paid_order).last()
        assert entry.old_status == OrderStatus.PAID
        assert entry.new_status == OrderStatus.PROCESSING
        assert entry.actor_id == farmer.id
        assert entry.note == "Status changed to processing"

    def test_caller_note(self, move, paid_order, farmer):
        move(farmer, paid_order, OrderStatus.PROCESSING, note="Packing today")
        assert OrderStatusHistory.objects.filter(order=paid_order).last().note == "Packing today"

    def test_rejected_transition_leaves_no_trace(self, move, pending_order, farmer):
        with pytest.raises(TransitionNotAllowed):
            move(farmer, pending_order, OrderStatus.SHIPPED)
        assert OrderStatusHistory.objects.filter(order=pending_order).count() == 1


class TestInventoryCommit:
    def test_checkout_does_not_touch_stock(self, pending_order, product):
        assert stock(product) == Decimal("20")

    def test_commit_happens_once(self, move, paid_order, farmer, product):
        assert stock(product) == Decimal("17")
        move(farmer, paid_order, OrderStatus.PROCESSING)
        assert stock(product) == Decimal("17")

    def test_scenario_from_checkout_to_delivery(
        self, order_service, move, place_order, consumer, farmer, make_product
    ):
        product_a = make_product(name="Produkt A", quantity=Decimal("10"))
        order = place_order(consumer, [(product_a, 3)])

        with pytest.raises(TransitionNotAllowed):
            move(farmer, order, OrderStatus.PROCESSING)

        order = order_service.update_payment_status(
            Principal.from_user(consumer),
            str(order.id),
            UpdatePaymentStatusDTO(payment_status=PaymentStatus.COMPLETED),
        )
        assert order.status == OrderStatus.PAID
        assert stock(product_a) == Decimal("7")

        order = move(farmer, order, OrderStatus.PROCESSING)
        order = move(farmer, order, OrderStatus.SHIPPED)
        order = move(farmer, order, OrderStatus.DELIVERED)
        assert stock(product_a) == Decimal("7")

        with pytest.raises(OrderAlreadyFinal):
            move(consumer, order, OrderStatus.DELIVERED)
