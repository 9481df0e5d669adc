"""Unit tests for order DTO validation."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.constants import AllocationMode, OrderStatus, PaymentStatus
from modules.orders.dtos import (
    ContactDTO,
    CreateDirectOrderDTO,
    CreateWebOrderDTO,
    DirectOrderItemDTO,
    OrderHeaderDTO,
    WebOrderItemDTO,
)

pytestmark = pytest.mark.unit


def _contact(**overrides):
    data = {"name": "Juan", "phone": "11-5555-0000", "address": "Mitre 10"}
    data.update(overrides)
    return ContactDTO(**data)


class TestOrderHeaderDTO:
    def test_defaults(self):
        header = OrderHeaderDTO(operator_id=1)
        assert header.status == OrderStatus.PENDING
        assert header.payment_status == PaymentStatus.PENDING
        assert header.allocation_mode == AllocationMode.ON_CREATE
        assert header.channel == "STAFF"
        assert header.customer_id is None

    def test_channel_is_normalized(self):
        assert OrderHeaderDTO(operator_id=1, channel=" phone ").channel == "PHONE"

    def test_blank_channel_rejected(self):
        with pytest.raises(ValidationError):
            OrderHeaderDTO(operator_id=1, channel="  ")

    def test_cannot_start_cancelled(self):
        with pytest.raises(ValidationError):
            OrderHeaderDTO(operator_id=1, status=OrderStatus.CANCELLED)

    def test_can_start_delivered(self):
        header = OrderHeaderDTO(operator_id=1, status="DELIVERED")
        assert header.status == OrderStatus.DELIVERED

    def test_delivered_requires_allocation_on_create(self):
        with pytest.raises(ValidationError):
            OrderHeaderDTO(
                operator_id=1,
                status=OrderStatus.DELIVERED,
                allocation_mode=AllocationMode.ON_DELIVERY,
            )

    def test_is_frozen(self):
        header = OrderHeaderDTO(operator_id=1)
        with pytest.raises(ValidationError):
            header.channel = "WEB"


class TestItemDTOs:
    def test_direct_item_requires_positive_quantity(self):
        with pytest.raises(ValidationError):
            DirectOrderItemDTO(product_id=uuid4(), quantity=0, unit_price=Decimal("1"))

    def test_direct_item_rejects_negative_price(self):
        with pytest.raises(ValidationError):
            DirectOrderItemDTO(product_id=uuid4(), quantity=1, unit_price=Decimal("-0.01"))

    def test_direct_item_accepts_zero_price(self):
        item = DirectOrderItemDTO(product_id=uuid4(), quantity=1, unit_price=Decimal("0"))
        assert item.unit_price == Decimal("0")
        assert item.comment == ""

    def test_web_item_requires_positive_quantity(self):
        with pytest.raises(ValidationError):
            WebOrderItemDTO(product_id=uuid4(), quantity=-1)


class TestCreateDTOs:
    def test_direct_order_requires_items(self):
        with pytest.raises(ValidationError):
            CreateDirectOrderDTO(header=OrderHeaderDTO(operator_id=1), items=[])

    def test_web_order_requires_items(self):
        with pytest.raises(ValidationError):
            CreateWebOrderDTO(contact=_contact(), items=[])

    def test_web_order_from_plain_data(self):
        product_id = uuid4()
        dto = CreateWebOrderDTO(
            contact={"name": "Juan", "phone": "1", "address": "Mitre 10"},
            items=[{"product_id": str(product_id), "quantity": 2}],
        )
        assert dto.items[0].product_id == product_id


class TestContactDTO:
    def test_strips_whitespace(self):
        assert _contact(name="  Juan  ").name == "Juan"

    @pytest.mark.parametrize("field", ["name", "phone", "address"])
    def test_required_fields_not_blank(self, field):
        with pytest.raises(ValidationError):
            _contact(**{field: "   "})

    def test_optional_fields(self):
        contact = _contact(email="juan@example.com", notes="Timbre 2B")
        assert contact.email == "juan@example.com"
        assert contact.notes == "Timbre 2B"
