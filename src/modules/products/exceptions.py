"""Product domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import NotFound


class ProductNotFound(NotFound):
    """A product referenced by an order item does not exist or was deleted."""
