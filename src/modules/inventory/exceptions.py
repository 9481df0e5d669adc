"""Stock ledger exceptions."""

from __future__ import annotations

from shared.domain.exceptions import ConflictError, NotFound


class StockRecordNotFound(NotFound):
    """No stock record exists for the product (or the given record id)."""


class StockConflict(ConflictError):
    """A concurrent adjustment left too little stock for this one.

    Safe to retry the whole operation: re-read, re-check, re-allocate.
    """
