"""Customer repository interface.

Besides the generic contract it exposes the customer-profile updater the
order engine notifies after a staff order (``record_purchase``).
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.customers.models import Customer


class ICustomerRepository(IRepository["Customer"]):
    """Repository contract for the Customer aggregate."""

    @abstractmethod
    def record_purchase(self, customer_id: Any, timestamp: datetime) -> None:
        """Store *timestamp* as the customer's last purchase.

        Raises:
            CustomerNotFound: no customer with that id.
        """
