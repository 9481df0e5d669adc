"""Customer domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import NotFound


class CustomerNotFound(NotFound):
    """The customer referenced by an order does not exist."""
