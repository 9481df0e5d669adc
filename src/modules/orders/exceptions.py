"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  Every class
derives from the shared taxonomy in ``shared.domain.exceptions``; the DRF
exception handler translates them into HTTP responses.

Ledger and catalogue errors are re-exported so callers of the order engine
can catch everything from one module.
"""

from __future__ import annotations

from modules.customers.exceptions import CustomerNotFound
from modules.inventory.exceptions import StockConflict, StockRecordNotFound
from modules.products.exceptions import ProductNotFound
from shared.domain.exceptions import (
    ConflictError,
    InsufficientStock,
    InvalidStateTransition,
    NotFound,
)

__all__ = [
    "ConflictError",
    "CustomerNotFound",
    "InsufficientStock",
    "InvalidStateTransition",
    "NotFound",
    "OrderNotFound",
    "ProductNotFound",
    "StockConflict",
    "StockRecordNotFound",
]


class OrderNotFound(NotFound):
    """The requested order does not exist or has been soft-deleted."""
