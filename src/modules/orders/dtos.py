"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``ContactDTO``: contact snapshot captured for guest/web orders.
- ``OrderHeaderDTO``: header fields handed to the aggregate builder.
- ``DirectOrderItemDTO`` / ``CreateDirectOrderDTO``: staff path, prices
  supplied by the operator.
- ``WebOrderItemDTO`` / ``CreateWebOrderDTO``: guest path, prices resolved
  by the server.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import (
    INITIAL_STATES,
    STAFF_CHANNEL,
    AllocationMode,
    OrderStatus,
    PaymentStatus,
)

# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------


class ContactDTO(BaseModel):
    """Immutable contact snapshot (name, phone and address are mandatory)."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str
    phone: str
    address: str
    email: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name", "phone", "address")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Field must not be blank.")
        return v


class OrderHeaderDTO(BaseModel):
    """Header of a new order.

    Validates:
    - Initial status is ``PENDING`` or ``DELIVERED`` (never ``CANCELLED``).
    - An order created as ``DELIVERED`` allocates stock on creation.
    """

    model_config = ConfigDict(frozen=True)

    operator_id: int
    customer_id: Optional[UUID] = None
    channel: str = STAFF_CHANNEL
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    allocation_mode: AllocationMode = AllocationMode.ON_CREATE
    placed_at: Optional[datetime] = None
    assembler_id: Optional[int] = None
    delivery_agent_id: Optional[int] = None

    @field_validator("channel")
    @classmethod
    def channel_must_not_be_blank(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("Channel must not be blank.")
        return v

    @field_validator("status")
    @classmethod
    def status_must_be_initial(cls, v: OrderStatus) -> OrderStatus:
        if v not in INITIAL_STATES:
            raise ValueError(f"Orders cannot be created with status {v}.")
        return v

    @model_validator(mode="after")
    def delivered_orders_allocate_on_create(self):
        if (
            self.status == OrderStatus.DELIVERED
            and self.allocation_mode != AllocationMode.ON_CREATE
        ):
            raise ValueError(
                "Orders created as DELIVERED must allocate stock on creation."
            )
        return self


# ---------------------------------------------------------------------------
# Staff / API path
# ---------------------------------------------------------------------------


class DirectOrderItemDTO(BaseModel):
    """Line item with an operator-supplied unit price."""

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    unit_price: Decimal
    comment: str = ""

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @field_validator("unit_price")
    @classmethod
    def unit_price_must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Unit price cannot be negative.")
        return v


class CreateDirectOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    header: OrderHeaderDTO
    items: List[DirectOrderItemDTO]

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[DirectOrderItemDTO]
    ) -> List[DirectOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v


# ---------------------------------------------------------------------------
# Guest / web path
# ---------------------------------------------------------------------------


class WebOrderItemDTO(BaseModel):
    """Web line item: no price, the server resolves it."""

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CreateWebOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    contact: ContactDTO
    items: List[WebOrderItemDTO]

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(cls, v: List[WebOrderItemDTO]) -> List[WebOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v
