from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from modules.customers.models import Customer
from modules.inventory.models import Location, StockRecord
from modules.orders.config import OrderDefaults
from modules.orders.services import build_order_service
from modules.products.models import PriceList, Product, ProductUnit


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def operator():
    return get_user_model().objects.create_user("operador", password="operador123")


@pytest.fixture()
def auth_client(api_client, operator):
    api_client.force_authenticate(user=operator)
    return api_client


@pytest.fixture()
def customer():
    return Customer.objects.create(
        name="María López",
        email="maria@example.com",
        phone="11-4321-0000",
        address="Av. Rivadavia 100",
    )


@pytest.fixture()
def guest_customer():
    return Customer.objects.create(name="Cliente Web", email="web@example.com")


@pytest.fixture()
def web_price_list():
    return PriceList.objects.create(code="WEB", name="Precios web")


@pytest.fixture()
def order_defaults(operator, guest_customer):
    return OrderDefaults(
        system_user_id=operator.id,
        guest_customer_id=guest_customer.id,
        web_channel="WEB",
        web_price_list_code="WEB",
    )


@pytest.fixture()
def order_service(order_defaults):
    return build_order_service(order_defaults)


@pytest.fixture()
def use_order_defaults(settings, order_defaults):
    """Point the HTTP layer at the same defaults the service fixtures use."""
    settings.ORDER_DEFAULTS = {
        "GUEST_CUSTOMER_ID": str(order_defaults.guest_customer_id),
        "SYSTEM_USER_ID": order_defaults.system_user_id,
        "WEB_CHANNEL": order_defaults.web_channel,
        "WEB_PRICE_LIST_CODE": order_defaults.web_price_list_code,
    }
    return order_defaults


@pytest.fixture()
def location():
    return Location.objects.create(code="CENTRAL", name="Depósito central")


@pytest.fixture()
def second_location():
    return Location.objects.create(code="LOCAL", name="Local")


@pytest.fixture()
def make_product():
    counter = {"n": 0}

    def _make(name="producto", base_price=Decimal("10.00"), unit=ProductUnit.UNIT, **extra):
        counter["n"] += 1
        return Product.objects.create(
            sku=extra.pop("sku", f"SKU-{counter['n']:03d}"),
            name=name,
            base_price=base_price,
            unit=unit,
            **extra,
        )

    return _make


@pytest.fixture()
def make_stock(location):
    def _make(product, quantity, at=None, age_days=0):
        return StockRecord.objects.create(
            product=product,
            location=at or location,
            quantity=quantity,
            last_updated=timezone.now() - timedelta(days=age_days),
        )

    return _make


@pytest.fixture()
def yerba(make_product):
    return make_product(name="Yerba mate", base_price=Decimal("4200.00"))


@pytest.fixture()
def jamon(make_product):
    return make_product(name="Jamón cocido", base_price=Decimal("18.50"), unit=ProductUnit.GRAM)
