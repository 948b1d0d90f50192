"""Integration tests for outbox writes and the relay task."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from modules.accounts.principal import Principal
from modules.core.models import EventStatus, OutboxEvent
from modules.core.tasks import publish_outbox_events
from modules.orders.dtos import UpdatePaymentStatusDTO
from modules.orders.handlers import OrderCreatedHandler

pytestmark = pytest.mark.integration


def test_each_transition_writes_one_event(order_service, pending_order, consumer):
    order_service.update_payment_status(
        Principal.from_user(consumer),
        str(pending_order.id),
        UpdatePaymentStatusDTO(payment_status="completed"),
    )

    types = list(
        OutboxEvent.objects.filter(aggregate_id=str(pending_order.id))
        .order_by("created_at", "id")
        .values_list("event_type", flat=True)
    )
    assert types == ["OrderCreated", "PaymentStatusChanged", "OrderStatusChanged"]


def test_relay_publishes_pending_events(pending_order):
    result = publish_outbox_events.apply().get()

    assert result == {"published": 1, "failed": 0, "skipped": 0}
    event = OutboxEvent.objects.get()
    assert event.status == EventStatus.PUBLISHED
    assert event.processed_at is not None


def test_relay_marks_handler_failure(pending_order):
    with patch.object(OrderCreatedHandler, "handle", side_effect=RuntimeError("boom")):
        result = publish_outbox_events()

    assert result["failed"] == 1
    event = OutboxEvent.objects.get()
    assert event.status == EventStatus.FAILED
    assert event.retry_count == 1
    assert event.error_message == "boom"


def test_failed_event_is_retried(pending_order):
    with patch.object(OrderCreatedHandler, "handle", side_effect=RuntimeError("boom")):
        publish_outbox_events()

    assert publish_outbox_events()["published"] == 1
    assert OutboxEvent.objects.get().status == EventStatus.PUBLISHED


def test_event_without_subscribers_is_skipped():
    OutboxEvent.objects.create(
        event_type="SomethingElse", payload={}, aggregate_id="x", topic="orders"
    )
    assert publish_outbox_events()["skipped"] == 1
    assert OutboxEvent.objects.get().status == EventStatus.PUBLISHED
