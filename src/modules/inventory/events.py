"""Domain events for the inventory bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class StockAdjusted(DomainEvent):
    """Raised on every ledger adjustment (allocation or reversal).

    ``aggregate_id`` is the stock record id.
    """

    product_id: str = ""
    delta: int = 0
    quantity: int = 0
