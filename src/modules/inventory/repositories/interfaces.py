"""Stock Ledger Accessor contract.

Every method must run inside the caller's ``transaction.atomic`` block:
``find_allocatable`` takes a row lock that is only released at commit.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from modules.inventory.models import StockRecord


class IStockLedger(ABC):
    @abstractmethod
    def find_allocatable(self, product_id: Any, min_quantity: int) -> Optional[StockRecord]:
        """Oldest record (by ``last_updated``) holding at least *min_quantity*.

        ``None`` means no single record can satisfy the line; quantities are
        never split across records.
        """

    @abstractmethod
    def find_for_product(self, product_id: Any) -> Optional[StockRecord]:
        """Oldest record for the product regardless of quantity."""

    @abstractmethod
    def adjust(self, stock_record_id: Any, delta: int) -> StockRecord:
        """Apply a signed *delta* to the record's quantity.

        Raises:
            StockRecordNotFound: the record does not exist.
            StockConflict: the result would be negative.
        """

    @abstractmethod
    def total_available(self, product_id: Any) -> int:
        """Sum of the product's quantity across every location."""
