"""Django ORM implementation of the Stock Ledger Accessor.

Concurrency control:
- ``find_allocatable`` reads with ``select_for_update()`` so two orders
  competing for the same record queue behind each other (no-op on SQLite).
- ``adjust`` is a single conditional ``UPDATE ... WHERE quantity + delta >= 0``
  so the non-negative invariant holds even when the lock is unavailable
  or the caller skipped ``find_allocatable``.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from django.db import transaction
from django.db.models import F, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from modules.core.models import OutboxEvent
from modules.inventory.events import StockAdjusted
from modules.inventory.exceptions import StockConflict, StockRecordNotFound
from modules.inventory.models import StockRecord
from modules.inventory.repositories.interfaces import IStockLedger

logger = structlog.get_logger(__name__)


class StockLedgerDjangoRepository(IStockLedger):
    """Concrete stock ledger backed by Django ORM."""

    def find_allocatable(self, product_id: Any, min_quantity: int) -> Optional[StockRecord]:
        return (
            StockRecord.objects.select_for_update()
            .filter(product_id=product_id, quantity__gte=min_quantity)
            .order_by("last_updated", "id")
            .first()
        )

    def find_for_product(self, product_id: Any) -> Optional[StockRecord]:
        return (
            StockRecord.objects.select_for_update()
            .filter(product_id=product_id)
            .order_by("last_updated", "id")
            .first()
        )

    @transaction.atomic
    def adjust(self, stock_record_id: Any, delta: int) -> StockRecord:
        log = logger.bind(stock_record_id=str(stock_record_id), delta=delta)

        updated = StockRecord.objects.filter(
            id=stock_record_id, quantity__gte=-delta
        ).update(quantity=F("quantity") + delta, last_updated=timezone.now())

        if not updated:
            if not StockRecord.objects.filter(id=stock_record_id).exists():
                raise StockRecordNotFound(
                    f"Stock record {stock_record_id} not found.",
                    stock_record_id=stock_record_id,
                )
            log.warning("stock.adjust_conflict")
            raise StockConflict(
                f"Stock record {stock_record_id} cannot absorb a change of {delta}.",
                stock_record_id=stock_record_id,
            )

        record = StockRecord.objects.get(id=stock_record_id)
        OutboxEvent.record(
            StockAdjusted(
                aggregate_id=record.id,
                product_id=str(record.product_id),
                delta=delta,
                quantity=record.quantity,
            ),
            topic="inventory",
        )
        log.info(
            "stock.adjusted",
            product_id=str(record.product_id),
            quantity=record.quantity,
        )
        return record

    def total_available(self, product_id: Any) -> int:
        return StockRecord.objects.filter(product_id=product_id).aggregate(
            total=Coalesce(Sum("quantity"), 0)
        )["total"]
