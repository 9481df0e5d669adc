"""Django ORM implementation of the Customer repository."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from modules.customers.exceptions import CustomerNotFound
from modules.customers.models import Customer
from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerDjangoRepository(ICustomerRepository):
    """Concrete Customer repository backed by Django ORM."""

    def get_by_id(self, id: Any) -> Optional[Customer]:
        """Returns ``None`` for non-existent or invalid IDs (e.g. malformed UUID)."""
        try:
            return Customer.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Customer]:
        queryset = Customer.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Customer) -> Customer:
        entity.save()
        logger.info("customer.saved", customer_id=str(entity.id))
        return entity

    def record_purchase(self, customer_id: Any, timestamp: datetime) -> None:
        updated = Customer.objects.filter(id=customer_id).update(
            last_purchase_at=timestamp,
            updated_at=timezone.now(),
        )
        if not updated:
            raise CustomerNotFound(
                f"Customer {customer_id} not found.", customer_id=customer_id
            )
        logger.info(
            "customer.purchase_recorded",
            customer_id=str(customer_id),
            last_purchase_at=timestamp.isoformat(),
        )
