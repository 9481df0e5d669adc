"""Unit tests for Orders event handlers and in-memory bus."""

from __future__ import annotations

import logging
from uuid import uuid4

import pytest

from modules.orders.events import (
    OrderAssignmentUpdated,
    OrderCancelled,
    OrderCreated,
    OrderDelivered,
)
from modules.orders.handlers import (
    OrderAssignmentUpdatedHandler,
    OrderCancelledHandler,
    OrderCreatedHandler,
    OrderDeliveredHandler,
)
from shared.infrastructure.bus import InMemoryEventBus, event_bus

pytestmark = pytest.mark.unit


def test_order_created_handler_logs(caplog):
    event = OrderCreated(aggregate_id=uuid4(), channel="WEB", total_amount="10.00")

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        OrderCreatedHandler().handle(event)

    assert any(
        "Procesando alta del pedido" in record.getMessage() for record in caplog.records
    )


def test_order_cancelled_handler_logs(caplog):
    event = OrderCancelled(aggregate_id=uuid4(), restored_items=2)

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        OrderCancelledHandler().handle(event)

    assert any(
        "Procesando cancelación del pedido" in record.getMessage()
        for record in caplog.records
    )


def test_order_delivered_handler_logs(caplog):
    event = OrderDelivered(aggregate_id=uuid4())

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        OrderDeliveredHandler().handle(event)

    assert any(
        "Procesando entrega del pedido" in record.getMessage() for record in caplog.records
    )


def test_order_assignment_updated_handler_logs(caplog):
    event = OrderAssignmentUpdated(aggregate_id=uuid4(), payment_status="PAID")

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        OrderAssignmentUpdatedHandler().handle(event)

    assert any(
        "Procesando actualización del pedido" in record.getMessage()
        for record in caplog.records
    )


def test_in_memory_event_bus_routes_events():
    bus = InMemoryEventBus()
    handled = []

    class CapturingHandler:
        def handle(self, event) -> None:
            handled.append(event)

    handler = CapturingHandler()
    event = OrderCreated(aggregate_id=uuid4())

    bus.subscribe(OrderCreated, handler)
    bus.subscribe(OrderCreated, handler)
    delivered = bus.publish(event)

    assert handled == [event]
    assert delivered == 1
    assert bus.publish(OrderDelivered(aggregate_id=uuid4())) == 0


def test_app_registry_subscribes_order_handlers():
    for event_class in (
        OrderCreated,
        OrderCancelled,
        OrderDelivered,
        OrderAssignmentUpdated,
    ):
        assert event_bus.publish(event_class(aggregate_id=uuid4())) >= 1
