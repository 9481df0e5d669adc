"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderAssignmentUpdated,
    OrderCancelled,
    OrderCreated,
    OrderDelivered,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            f"Procesando alta del pedido {event.aggregate_id}",
            order_id=str(event.aggregate_id),
            channel=event.channel,
            total_amount=event.total_amount,
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            f"Procesando cancelación del pedido {event.aggregate_id}",
            order_id=str(event.aggregate_id),
            restored_items=event.restored_items,
        )


class OrderDeliveredHandler(IEventHandler[OrderDelivered]):
    def handle(self, event: OrderDelivered) -> None:
        logger.info(
            f"Procesando entrega del pedido {event.aggregate_id}",
            order_id=str(event.aggregate_id),
        )


class OrderAssignmentUpdatedHandler(IEventHandler[OrderAssignmentUpdated]):
    def handle(self, event: OrderAssignmentUpdated) -> None:
        logger.info(
            f"Procesando actualización del pedido {event.aggregate_id}",
            order_id=str(event.aggregate_id),
            payment_status=event.payment_status,
            assembler_id=event.assembler_id,
            delivery_agent_id=event.delivery_agent_id,
        )


order_created_handler = OrderCreatedHandler()
order_cancelled_handler = OrderCancelledHandler()
order_delivered_handler = OrderDeliveredHandler()
order_assignment_updated_handler = OrderAssignmentUpdatedHandler()
