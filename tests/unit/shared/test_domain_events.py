"""Unit tests for domain event primitives."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from modules.orders.events import OrderCancelled, OrderCreated
from shared.domain.events import DomainEventMixin

pytestmark = pytest.mark.unit


def test_event_name_is_class_name():
    assert OrderCreated(aggregate_id=uuid4()).event_name == "OrderCreated"


def test_to_payload_is_json_safe():
    aggregate_id = uuid4()
    payload = OrderCreated(aggregate_id=aggregate_id, total_price=str(Decimal("9.99"))).to_payload()

    assert payload["aggregate_id"] == str(aggregate_id)
    assert isinstance(payload["event_id"], str)
    assert isinstance(payload["occurred_on"], str)
    assert payload["total_price"] == "9.99"


def test_from_payload_rebuilds_event():
    original = OrderCancelled(aggregate_id=uuid4(), previous_status="paid", reason="Sold out", stock_released=True)

    rebuilt = OrderCancelled.from_payload(original.to_payload())

    assert rebuilt == original
    assert isinstance(rebuilt.aggregate_id, UUID)
    assert isinstance(rebuilt.occurred_on, datetime)


def test_from_payload_ignores_unknown_keys():
    payload = OrderCreated(aggregate_id=uuid4()).to_payload()
    payload["legacy_field"] = "x"
    assert OrderCreated.from_payload(payload).event_name == "OrderCreated"


def test_mixin_collects_and_clears_events():
    class Aggregate(DomainEventMixin):
        pass

    aggregate = Aggregate()
    assert aggregate.domain_events == []

    aggregate.add_domain_event(OrderCreated(aggregate_id=uuid4()))
    events = aggregate.domain_events
    aggregate.clear_domain_events()

    assert len(events) == 1
    assert aggregate.domain_events == []
