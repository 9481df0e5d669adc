"""Product repository interface.

The order engine treats products as read-mostly references: it needs
look-ups by id (single and batched) and nothing that edits the catalogue.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_many(self, ids: Iterable[Any]) -> Dict[Any, Product]:
        """Return the existing products among *ids*, keyed by primary key."""
