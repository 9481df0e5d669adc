from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from modules.customers.models import Customer
from modules.inventory.models import Location, StockRecord
from modules.orders.config import OrderDefaults
from modules.orders.constants import AllocationMode
from modules.orders.dtos import (
    ContactDTO,
    CreateDirectOrderDTO,
    CreateWebOrderDTO,
    DirectOrderItemDTO,
    OrderHeaderDTO,
    WebOrderItemDTO,
)
from modules.orders.services import build_order_service
from modules.products.models import (
    DailyPrice,
    PriceList,
    PriceListEntry,
    Product,
    ProductStatus,
    ProductUnit,
)
from shared.domain.exceptions import DomainError

GUEST_CUSTOMER_NAME = "Cliente Web"


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument(
            "--orders",
            type=int,
            default=30,
            help="Number of orders to place through the order engine.",
        )

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        with transaction.atomic():
            admin = self._seed_users()
            guest, customers = self._seed_customers()
            locations = self._seed_locations()
            products = self._seed_products()
            self._seed_pricing(products)
            self._seed_stock(products, locations)

        defaults = OrderDefaults.from_settings()
        defaults = OrderDefaults(
            system_user_id=admin.id,
            guest_customer_id=defaults.guest_customer_id or guest.id,
            web_channel=defaults.web_channel,
            web_price_list_code=defaults.web_price_list_code,
        )
        orders_created = self._seed_orders(
            defaults, admin, customers, products, options["orders"]
        )

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"customers={len(customers) + 1}, "
                f"locations={len(locations)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self):
        User = get_user_model()
        admin = User.objects.filter(username="admin").first()
        if admin is None:
            admin = User.objects.create_superuser("admin", password="admin123")
        if not User.objects.filter(username="cajero").exists():
            User.objects.create_user("cajero", password="cajero123", is_staff=True)
        if not User.objects.filter(username="repartidor").exists():
            User.objects.create_user("repartidor", password="repartidor123")
        return admin

    def _seed_customers(self) -> tuple[Customer, list[Customer]]:
        self.stdout.write("Creating customers...")
        guest, _ = Customer.objects.get_or_create(
            name=GUEST_CUSTOMER_NAME,
            defaults={"email": "web@example.com"},
        )
        customers: list[Customer] = []
        seed_customers = [
            ("Ana Gómez", "ana@example.com", "11-4555-1234", "Av. Corrientes 1234"),
            ("Bruno Díaz", "bruno@example.com", "11-4666-2345", "Calle Florida 55"),
            ("Carla Méndez", "carla@example.com", "11-4777-3456", "Av. Santa Fe 900"),
            ("Daniel Ruiz", "daniel@example.com", "11-4888-4567", "Tucumán 321"),
            ("Elena Torres", "elena@example.com", "11-4999-5678", "Belgrano 777"),
        ]
        for name, email, phone, address in seed_customers:
            customer, _ = Customer.objects.get_or_create(
                email=email,
                defaults={"name": name, "phone": phone, "address": address},
            )
            customers.append(customer)
        self.stdout.write(self.style.SUCCESS("Creating customers... Done!"))
        return guest, customers

    def _seed_locations(self) -> list[Location]:
        self.stdout.write("Creating locations...")
        locations = []
        for code, name in [("CENTRAL", "Depósito central"), ("LOCAL", "Local")]:
            location, _ = Location.objects.get_or_create(code=code, defaults={"name": name})
            locations.append(location)
        self.stdout.write(self.style.SUCCESS("Creating locations... Done!"))
        return locations

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("ALM-001", "Yerba mate 1kg", ProductUnit.UNIT, Decimal("4200.00")),
            ("ALM-002", "Azúcar 1kg", ProductUnit.UNIT, Decimal("1350.00")),
            ("ALM-003", "Aceite girasol 1.5l", ProductUnit.UNIT, Decimal("2900.00")),
            ("ALM-004", "Fideos secos 500g", ProductUnit.UNIT, Decimal("1100.00")),
            ("FIAM-001", "Jamón cocido", ProductUnit.GRAM, Decimal("18.50")),
            ("FIAM-002", "Queso de máquina", ProductUnit.GRAM, Decimal("14.20")),
            ("FIAM-003", "Salame milán", ProductUnit.GRAM, None),
            ("BEB-001", "Agua mineral 2l", ProductUnit.UNIT, Decimal("950.00")),
        ]
        for sku, name, unit, price in catalog:
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "unit": unit,
                    "base_price": price,
                    "status": ProductStatus.ACTIVE,
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_pricing(self, products: list[Product]) -> None:
        self.stdout.write("Creating price lists...")
        web, _ = PriceList.objects.get_or_create(
            code="WEB", defaults={"name": "Precios tienda web"}
        )
        for product in products[:3]:
            PriceListEntry.objects.get_or_create(
                price_list=web,
                product=product,
                defaults={"unit_price": (product.base_price or Decimal("0")) * Decimal("1.10")},
            )
        today = timezone.localdate()
        for product in products:
            if product.unit != ProductUnit.GRAM:
                continue
            DailyPrice.objects.get_or_create(
                product=product,
                effective_date=today,
                defaults={"price": Decimal(random.randint(12, 25))},
            )
        self.stdout.write(self.style.SUCCESS("Creating price lists... Done!"))

    def _seed_stock(self, products: list[Product], locations: list[Location]) -> None:
        self.stdout.write("Creating stock records...")
        for product in products:
            for offset, location in enumerate(locations):
                maximum = 20000 if product.unit == ProductUnit.GRAM else 200
                StockRecord.objects.get_or_create(
                    product=product,
                    location=location,
                    defaults={
                        "quantity": random.randint(maximum // 10, maximum),
                        "last_updated": timezone.now() - timedelta(days=offset),
                    },
                )
        self.stdout.write(self.style.SUCCESS("Creating stock records... Done!"))

    def _seed_orders(self, defaults, operator, customers, products, count) -> int:
        self.stdout.write("Creating orders...")
        service = build_order_service(defaults)
        created = 0

        for i in range(count):
            sample = random.sample(products, k=random.randint(1, 3))
            try:
                if i % 3 == 0:
                    order = service.create_from_web(
                        CreateWebOrderDTO(
                            contact=ContactDTO(
                                name=f"Invitado {i + 1}",
                                phone="11-5000-0000",
                                address="Retiro en local",
                            ),
                            items=[
                                WebOrderItemDTO(product_id=p.id, quantity=self._quantity(p))
                                for p in sample
                            ],
                        )
                    )
                else:
                    mode = random.choice(list(AllocationMode))
                    order = service.create_direct(
                        CreateDirectOrderDTO(
                            header=OrderHeaderDTO(
                                operator_id=operator.id,
                                customer_id=random.choice(customers).id,
                                allocation_mode=mode,
                            ),
                            items=[
                                DirectOrderItemDTO(
                                    product_id=p.id,
                                    quantity=self._quantity(p),
                                    unit_price=p.base_price or Decimal("0.00"),
                                )
                                for p in sample
                            ],
                        )
                    )
                roll = random.random()
                if roll < 0.3:
                    service.confirm_delivery(order.id, user_id=operator.id)
                elif roll < 0.45:
                    service.cancel(order.id, notes="Seed cancellation", user_id=operator.id)
            except DomainError as exc:
                self.stdout.write(self.style.WARNING(f"Skipping order {i + 1}: {exc}"))
                continue
            created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created

    @staticmethod
    def _quantity(product: Product) -> int:
        if product.unit == ProductUnit.GRAM:
            return random.choice([100, 250, 500])
        return random.randint(1, 3)
