"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
All write operations are wrapped in ``transaction.atomic()`` so the Order
aggregate (Order + OrderItems) and its outbox rows are persisted together.

Concurrency control on lifecycle transitions uses ``select_for_update()``
(no ``version`` field exists on the model).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.core.models import OutboxEvent
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

if TYPE_CHECKING:
    from modules.orders.builder import OrderDraft

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, draft: OrderDraft) -> Order:
        order = draft.order
        order.total_amount = draft.total_amount
        order.save()

        for item in draft.items:
            item.order = order
            item.save()

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(draft.items),
            total_amount=str(order.total_amount),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def queryset(self) -> QuerySet:
        """Alive orders with relations eager-loaded; the API filters on it."""
        return (
            Order.objects.alive()
            .select_related("customer", "operator")
            .prefetch_related("items__product", "status_history")
        )

    def get_by_id(self, id: Any) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        ``select_related`` for customer/operator (single JOIN) and
        ``prefetch_related`` for items, items->product, and status
        history (separate batched queries).  Prevents N+1.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self.queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: Any) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Only the order row is locked (``of=("self",)``); the nullable
        customer join would otherwise be rejected by PostgreSQL.
        """
        try:
            return (
                Order.objects.alive()
                .select_for_update(of=("self",))
                .select_related("customer")
                .prefetch_related("items__product")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional ORM filters and eager-loaded relations."""
        queryset = self.queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and flush its pending domain events to the outbox."""
        entity.save()

        events = entity.domain_events
        for event in events:
            OutboxEvent.record(event, topic=OUTBOX_TOPIC)
        entity.clear_domain_events()

        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    # ------------------------------------------------------------------
    # Status history
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: Any,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
            user_id=user_id,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history
