"""Event handlers for inventory domain events."""

from __future__ import annotations

import structlog

from modules.inventory.events import StockAdjusted
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class StockAdjustedHandler(IEventHandler[StockAdjusted]):
    def handle(self, event: StockAdjusted) -> None:
        logger.info(
            f"Stock del producto {event.product_id} ajustado en {event.delta}",
            stock_record_id=str(event.aggregate_id),
            product_id=event.product_id,
            delta=event.delta,
            quantity=event.quantity,
        )


stock_adjusted_handler = StockAdjustedHandler()
