"""A failure anywhere in an order operation leaves no partial writes.

Order rows, line items, stock movements, history and outbox rows share one
transaction; these tests break the last step and check nothing leaked.
"""

from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from modules.core.models import OutboxEvent
from modules.orders.constants import AllocationMode, OrderStatus
from modules.orders.dtos import CreateDirectOrderDTO, DirectOrderItemDTO, OrderHeaderDTO
from modules.orders.models import Order, OrderItem, OrderStatusHistory

pytestmark = pytest.mark.integration

ADD_HISTORY = "modules.orders.repositories.django_repository.OrderDjangoRepository.add_history"


def _dto(operator, *items, **header):
    return CreateDirectOrderDTO(
        header=OrderHeaderDTO(operator_id=operator.id, **header),
        items=[
            DirectOrderItemDTO(product_id=p.id, quantity=q, unit_price=Decimal("1.00"))
            for p, q in items
        ],
    )


class TestCreateAtomicity:
    def test_history_failure_rolls_back_stock_and_order(
        self, order_service, operator, yerba, jamon, make_stock
    ):
        yerba_record = make_stock(yerba, 10)
        jamon_record = make_stock(jamon, 1000)

        with patch(ADD_HISTORY, side_effect=DatabaseError("history down")):
            with pytest.raises(DatabaseError):
                order_service.create_direct(_dto(operator, (yerba, 3), (jamon, 200)))

        yerba_record.refresh_from_db()
        jamon_record.refresh_from_db()
        assert yerba_record.quantity == 10
        assert jamon_record.quantity == 1000
        assert not Order.objects.exists()
        assert not OrderItem.objects.exists()
        assert not OutboxEvent.objects.exists()


class TestCancelAtomicity:
    def test_history_failure_keeps_order_pending(self, order_service, operator, yerba, make_stock):
        record = make_stock(yerba, 10)
        order = order_service.create_direct(_dto(operator, (yerba, 4)))
        events_before = OutboxEvent.objects.count()

        with patch(ADD_HISTORY, side_effect=DatabaseError("history down")):
            with pytest.raises(DatabaseError):
                order_service.cancel(order.id)

        record.refresh_from_db()
        assert record.quantity == 6
        assert Order.objects.get(id=order.id).status == OrderStatus.PENDING
        assert OutboxEvent.objects.count() == events_before
        assert not OrderStatusHistory.objects.filter(new_status=OrderStatus.CANCELLED).exists()


class TestDeliveryAtomicity:
    def test_history_failure_releases_delivery_allocation(
        self, order_service, operator, yerba, make_stock
    ):
        record = make_stock(yerba, 10)
        order = order_service.create_direct(
            _dto(operator, (yerba, 4), allocation_mode=AllocationMode.ON_DELIVERY)
        )

        with patch(ADD_HISTORY, side_effect=DatabaseError("history down")):
            with pytest.raises(DatabaseError):
                order_service.confirm_delivery(order.id)

        record.refresh_from_db()
        assert record.quantity == 10
        assert Order.objects.get(id=order.id).status == OrderStatus.PENDING
