"""Unit tests for ``OrderService.create_from_web`` (guest path)."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from django.utils import timezone

from modules.core.models import OutboxEvent
from modules.orders.config import OrderDefaults
from modules.orders.constants import AllocationMode, OrderStatus, PaymentStatus
from modules.orders.dtos import ContactDTO, CreateWebOrderDTO, WebOrderItemDTO
from modules.orders.exceptions import InsufficientStock, ProductNotFound
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.services import build_order_service
from modules.products.models import DailyPrice, PriceListEntry

pytestmark = pytest.mark.unit


def _contact():
    return ContactDTO(
        name="Lucía Fernández",
        phone="11-6000-1234",
        address="Av. Cabildo 2000",
        email="lucia@example.com",
    )


def _dto(*items):
    return CreateWebOrderDTO(
        contact=_contact(),
        items=[WebOrderItemDTO(product_id=product.id, quantity=qty) for product, qty in items],
    )


class TestCreateFromWeb:
    def test_uses_configured_defaults(
        self, order_service, operator, guest_customer, yerba, make_stock
    ):
        make_stock(yerba, 5)

        order = order_service.create_from_web(_dto((yerba, 2)))

        assert order.customer_id == guest_customer.id
        assert order.operator_id == operator.id
        assert order.channel == "WEB"
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.allocation_mode == AllocationMode.ON_CREATE

    def test_contact_snapshot_stored(self, order_service, yerba, make_stock):
        make_stock(yerba, 5)

        order = order_service.create_from_web(_dto((yerba, 1)))

        assert order.contact == {
            "name": "Lucía Fernández",
            "phone": "11-6000-1234",
            "address": "Av. Cabildo 2000",
            "email": "lucia@example.com",
        }

    def test_decrements_stock(self, order_service, yerba, make_stock):
        record = make_stock(yerba, 5)

        order = order_service.create_from_web(_dto((yerba, 2)))

        record.refresh_from_db()
        assert record.quantity == 3
        assert order.items.get().stock_record_id == record.id

    def test_history_has_no_user(self, order_service, yerba, make_stock):
        make_stock(yerba, 5)
        order = order_service.create_from_web(_dto((yerba, 1)))
        assert OrderStatusHistory.objects.get(order=order).user_id is None

    def test_no_guest_customer_configured(self, operator, yerba, make_stock):
        service = build_order_service(OrderDefaults(system_user_id=operator.id))
        make_stock(yerba, 5)

        order = service.create_from_web(_dto((yerba, 1)))

        assert order.customer_id is None
        assert order.contact["name"] == "Lucía Fernández"


class TestWebPricing:
    def test_price_list_entry(self, order_service, web_price_list, yerba, make_stock):
        make_stock(yerba, 5)
        PriceListEntry.objects.create(
            price_list=web_price_list, product=yerba, unit_price=Decimal("4500.00")
        )

        order = order_service.create_from_web(_dto((yerba, 2)))

        assert order.items.get().unit_price == Decimal("4500.00")
        assert order.total_amount == Decimal("9000.00")

    def test_daily_price_feed(self, order_service, web_price_list, jamon, make_stock):
        make_stock(jamon, 1000)
        DailyPrice.objects.create(
            product=jamon, price=Decimal("20.00"), effective_date=timezone.localdate()
        )

        order = order_service.create_from_web(_dto((jamon, 250)))

        assert order.items.get().unit_price == Decimal("20.00")
        assert order.total_amount == Decimal("5000.00")

    def test_scheduled_daily_price_not_applied_yet(
        self, order_service, web_price_list, jamon, make_stock
    ):
        make_stock(jamon, 1000)
        today = timezone.localdate()
        DailyPrice.objects.create(product=jamon, price=Decimal("20.00"), effective_date=today)
        DailyPrice.objects.create(
            product=jamon, price=Decimal("99.00"), effective_date=today + timedelta(days=7)
        )

        order = order_service.create_from_web(_dto((jamon, 100)))

        assert order.items.get().unit_price == Decimal("20.00")
        assert order.total_amount == Decimal("2000.00")

    def test_base_price_fallback(self, order_service, yerba, make_stock):
        make_stock(yerba, 5)
        order = order_service.create_from_web(_dto((yerba, 1)))
        assert order.items.get().unit_price == Decimal("4200.00")

    def test_zero_price_when_unpriced(self, order_service, make_product, make_stock):
        unpriced = make_product(name="Salame", base_price=None)
        make_stock(unpriced, 5)

        order = order_service.create_from_web(_dto((unpriced, 1)))

        assert order.items.get().unit_price == Decimal("0.00")
        assert order.total_amount == Decimal("0.00")

    def test_price_frozen_after_catalogue_change(self, order_service, yerba, make_stock):
        make_stock(yerba, 5)
        order = order_service.create_from_web(_dto((yerba, 1)))

        yerba.base_price = Decimal("9999.00")
        yerba.save()

        refreshed = order_service.get_order(order.id)
        assert refreshed.items.get().unit_price == Decimal("4200.00")


class TestWebFailures:
    def test_unknown_product_rejected_before_any_stock_change(
        self, order_service, yerba, make_stock
    ):
        record = make_stock(yerba, 5)
        dto = CreateWebOrderDTO(
            contact=_contact(),
            items=[
                WebOrderItemDTO(product_id=yerba.id, quantity=1),
                WebOrderItemDTO(product_id=uuid4(), quantity=1),
            ],
        )

        with pytest.raises(ProductNotFound):
            order_service.create_from_web(dto)

        record.refresh_from_db()
        assert record.quantity == 5
        assert not OutboxEvent.objects.exists()

    def test_insufficient_stock_message(self, order_service, yerba, make_stock):
        make_stock(yerba, 2)

        with pytest.raises(InsufficientStock) as exc_info:
            order_service.create_from_web(_dto((yerba, 3)))

        error = exc_info.value
        assert "Yerba mate" in error.message
        assert "requested 3" in error.message
        assert "available 2" in error.message
        assert not Order.objects.exists()
