"""Unit tests for ``OrderService.create_direct`` (staff path).

Covers:
- Oldest-first single-record allocation and stock decrement.
- Client-supplied unit prices frozen on the line item.
- Insufficient stock aborts the whole order, naming product and availability.
- ``ON_DELIVERY`` orders leave stock untouched at creation.
- Best-effort customer profile update.
- History, outbox and totals written in the same unit of work.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest
from django.db import DatabaseError
from freezegun import freeze_time

from modules.core.models import OutboxEvent
from modules.customers.models import Customer
from modules.inventory.models import StockRecord
from modules.orders.constants import AllocationMode, OrderStatus, PaymentStatus
from modules.orders.dtos import CreateDirectOrderDTO, DirectOrderItemDTO, OrderHeaderDTO
from modules.orders.exceptions import (
    CustomerNotFound,
    InsufficientStock,
    ProductNotFound,
)
from modules.orders.models import Order, OrderItem, OrderStatusHistory

pytestmark = pytest.mark.unit


def _dto(operator, items, **header):
    return CreateDirectOrderDTO(
        header=OrderHeaderDTO(operator_id=operator.id, **header),
        items=[
            DirectOrderItemDTO(product_id=product.id, quantity=qty, unit_price=price)
            for product, qty, price in items
        ],
    )


class TestCreateDirect:
    def test_creates_order_and_decrements_stock(
        self, order_service, operator, customer, yerba, make_stock
    ):
        record = make_stock(yerba, 10)

        order = order_service.create_direct(
            _dto(operator, [(yerba, 4, Decimal("4000.00"))], customer_id=customer.id)
        )

        record.refresh_from_db()
        assert record.quantity == 6
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.channel == "STAFF"
        assert order.customer_id == customer.id
        assert order.operator_id == operator.id
        assert order.total_amount == Decimal("16000.00")

        item = order.items.get()
        assert item.unit_price == Decimal("4000.00")
        assert item.subtotal == Decimal("16000.00")
        assert item.stock_record_id == record.id

    def test_client_price_overrides_catalogue(self, order_service, operator, yerba, make_stock):
        make_stock(yerba, 10)

        order = order_service.create_direct(_dto(operator, [(yerba, 1, Decimal("1.00"))]))

        assert order.items.get().unit_price == Decimal("1.00")

    def test_allocates_from_oldest_sufficient_record(
        self, order_service, operator, yerba, make_stock, second_location
    ):
        newer = make_stock(yerba, 10, age_days=1)
        older = make_stock(yerba, 10, at=second_location, age_days=7)

        order_service.create_direct(_dto(operator, [(yerba, 3, Decimal("1.00"))]))

        newer.refresh_from_db()
        older.refresh_from_db()
        assert older.quantity == 7
        assert newer.quantity == 10

    def test_multiple_items(self, order_service, operator, yerba, jamon, make_stock):
        make_stock(yerba, 5)
        make_stock(jamon, 2000)

        order = order_service.create_direct(
            _dto(
                operator,
                [(yerba, 2, Decimal("4200.00")), (jamon, 350, Decimal("18.50"))],
            )
        )

        assert order.items.count() == 2
        assert order.total_amount == Decimal("8400.00") + Decimal("6475.00")
        assert StockRecord.objects.get(product=jamon).quantity == 1650

    def test_guest_customer_used_when_missing(
        self, order_service, operator, guest_customer, yerba, make_stock
    ):
        make_stock(yerba, 5)
        order = order_service.create_direct(_dto(operator, [(yerba, 1, Decimal("1.00"))]))
        assert order.customer_id == guest_customer.id

    def test_records_history_and_outbox(self, order_service, operator, yerba, make_stock):
        make_stock(yerba, 5)

        order = order_service.create_direct(_dto(operator, [(yerba, 1, Decimal("1.00"))]))

        history = OrderStatusHistory.objects.get(order=order)
        assert history.old_status is None
        assert history.new_status == OrderStatus.PENDING
        assert history.user_id == operator.id
        created = OutboxEvent.objects.get(event_type="OrderCreated")
        assert created.aggregate_id == str(order.id)
        assert created.payload["total_amount"] == "1.00"
        assert OutboxEvent.objects.filter(event_type="StockAdjusted").count() == 1

    def test_created_as_delivered(self, order_service, operator, yerba, make_stock):
        record = make_stock(yerba, 5)

        order = order_service.create_direct(
            _dto(operator, [(yerba, 2, Decimal("1.00"))], status=OrderStatus.DELIVERED)
        )

        record.refresh_from_db()
        assert order.status == OrderStatus.DELIVERED
        assert record.quantity == 3


class TestCreateDirectFailures:
    def test_insufficient_stock_names_product_and_total(
        self, order_service, operator, yerba, make_stock, second_location
    ):
        make_stock(yerba, 3)
        make_stock(yerba, 3, at=second_location)

        with pytest.raises(InsufficientStock) as exc_info:
            order_service.create_direct(_dto(operator, [(yerba, 5, Decimal("1.00"))]))

        error = exc_info.value
        assert "Yerba mate" in error.message
        assert error.context["available"] == 6
        assert error.context["requested"] == 5
        assert error.context["product_id"] == yerba.id

    def test_failure_rolls_back_earlier_items(
        self, order_service, operator, make_product, make_stock
    ):
        first, second = sorted(
            [make_product(name="Primero"), make_product(name="Segundo")],
            key=lambda p: str(p.id),
        )
        first_record = make_stock(first, 10)
        make_stock(second, 1)

        with pytest.raises(InsufficientStock):
            order_service.create_direct(
                _dto(operator, [(second, 5, Decimal("1")), (first, 4, Decimal("1"))])
            )

        first_record.refresh_from_db()
        assert first_record.quantity == 10
        assert not Order.objects.exists()
        assert not OrderItem.objects.exists()
        assert not OutboxEvent.objects.exists()

    def test_product_without_stock_records(self, order_service, operator, yerba):
        with pytest.raises(InsufficientStock) as exc_info:
            order_service.create_direct(_dto(operator, [(yerba, 1, Decimal("1.00"))]))
        assert exc_info.value.context["available"] == 0

    def test_unknown_product(self, order_service, operator, yerba, make_stock):
        record = make_stock(yerba, 5)
        dto = CreateDirectOrderDTO(
            header=OrderHeaderDTO(operator_id=operator.id),
            items=[
                DirectOrderItemDTO(product_id=yerba.id, quantity=1, unit_price=Decimal("1")),
                DirectOrderItemDTO(product_id=uuid4(), quantity=1, unit_price=Decimal("1")),
            ],
        )

        with pytest.raises(ProductNotFound):
            order_service.create_direct(dto)

        record.refresh_from_db()
        assert record.quantity == 5

    def test_unknown_customer(self, order_service, operator, yerba, make_stock):
        make_stock(yerba, 5)
        with pytest.raises(CustomerNotFound):
            order_service.create_direct(
                _dto(operator, [(yerba, 1, Decimal("1"))], customer_id=uuid4())
            )


class TestAllocationOnDelivery:
    def test_stock_untouched_at_creation(self, order_service, operator, yerba, make_stock):
        record = make_stock(yerba, 2)

        order = order_service.create_direct(
            _dto(
                operator,
                [(yerba, 5, Decimal("1.00"))],
                allocation_mode=AllocationMode.ON_DELIVERY,
            )
        )

        record.refresh_from_db()
        assert record.quantity == 2
        assert order.allocation_mode == AllocationMode.ON_DELIVERY
        assert order.items.get().stock_record_id is None


class TestRecordPurchase:
    def test_updates_customer_last_purchase(
        self, order_service, operator, customer, yerba, make_stock
    ):
        make_stock(yerba, 5)

        order_service.create_direct(
            _dto(operator, [(yerba, 1, Decimal("1"))], customer_id=customer.id)
        )

        customer.refresh_from_db()
        assert customer.last_purchase_at is not None

    @freeze_time("2024-05-02 15:30:00")
    def test_purchase_timestamp_is_order_time(
        self, order_service, operator, customer, yerba, make_stock
    ):
        make_stock(yerba, 5)

        order_service.create_direct(
            _dto(operator, [(yerba, 1, Decimal("1"))], customer_id=customer.id)
        )

        customer.refresh_from_db()
        assert customer.last_purchase_at == datetime(2024, 5, 2, 15, 30, tzinfo=timezone.utc)

    def test_profile_failure_does_not_abort_order(
        self, order_service, operator, customer, yerba, make_stock
    ):
        record = make_stock(yerba, 5)

        with patch(
            "modules.customers.repositories.django_repository.CustomerDjangoRepository.record_purchase",
            side_effect=DatabaseError("profile store down"),
        ):
            order = order_service.create_direct(
                _dto(operator, [(yerba, 1, Decimal("1"))], customer_id=customer.id)
            )

        record.refresh_from_db()
        assert Order.objects.filter(id=order.id).exists()
        assert record.quantity == 4
        assert Customer.objects.get(id=customer.id).last_purchase_at is None
