"""Order Aggregate Builder.

Assembles an unsaved ``Order`` and its ``OrderItem`` children from a header
and, for guest orders, a contact snapshot.  No I/O happens here: the
repository persists the draft once the engine has allocated stock.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Optional

from django.utils import timezone

from modules.orders.config import OrderDefaults
from modules.orders.dtos import ContactDTO, OrderHeaderDTO
from modules.orders.models import Order, OrderItem


@dataclass
class OrderDraft:
    order: Order
    items: List[OrderItem] = field(default_factory=list)

    def add_item(
        self,
        product_id: Any,
        quantity: int,
        unit_price: Decimal,
        comment: str = "",
        stock_record_id: Optional[Any] = None,
    ) -> OrderItem:
        item = OrderItem(
            product_id=product_id,
            quantity=quantity,
            unit_price=unit_price,
            comment=comment or "",
            stock_record_id=stock_record_id,
        )
        self.items.append(item)
        return item

    @property
    def total_amount(self) -> Decimal:
        return sum(
            (item.quantity * item.unit_price for item in self.items),
            Decimal("0.00"),
        )


class OrderAggregateBuilder:
    def __init__(self, defaults: OrderDefaults) -> None:
        self._defaults = defaults

    def build_order(
        self,
        header: OrderHeaderDTO,
        contact: Optional[ContactDTO] = None,
    ) -> OrderDraft:
        customer_id = header.customer_id
        if customer_id is None:
            customer_id = self._defaults.guest_customer_id

        order = Order(
            customer_id=customer_id,
            operator_id=header.operator_id,
            assembler_id=header.assembler_id,
            delivery_agent_id=header.delivery_agent_id,
            placed_at=header.placed_at or timezone.now(),
            channel=header.channel,
            status=header.status,
            payment_status=header.payment_status,
            allocation_mode=header.allocation_mode,
            contact=(
                contact.model_dump(mode="json", exclude_none=True) if contact else None
            ),
        )
        return OrderDraft(order=order)
