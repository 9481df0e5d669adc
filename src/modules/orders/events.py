"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created."""

    channel: str = ""
    total_amount: str = "0.00"


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled and its stock released."""

    restored_items: int = 0


@dataclass(frozen=True)
class OrderDelivered(DomainEvent):
    """Raised when delivery of an order is confirmed."""


@dataclass(frozen=True)
class OrderAssignmentUpdated(DomainEvent):
    """Raised when payment status or assigned staff change on an order.

    Only the fields that actually changed are filled in.
    """

    payment_status: Optional[str] = None
    assembler_id: Optional[int] = None
    delivery_agent_id: Optional[int] = None
