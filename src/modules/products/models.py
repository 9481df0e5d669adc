"""Product catalogue and pricing tables.

The order engine only reads these:
- ``Product``: reference + base price (nullable: a product may be priced
  exclusively through lists).
- ``PriceList`` / ``PriceListEntry``: named per-product overrides.
- ``DailyPrice``: the daily price feed consulted by web orders.

Product creation and editing belong to the catalogue admin, not here.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel, SoftDeleteModel

logger = structlog.get_logger(__name__)


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Activo"
    INACTIVE = "inactive", "Inactivo"


class ProductUnit(models.TextChoices):
    """How ``OrderItem.quantity`` and ``StockRecord.quantity`` are counted."""

    UNIT = "UNIT", "Unidades"
    GRAM = "GRAM", "Gramos"


class Product(SoftDeleteModel):
    """Product aggregate root.

    ``name`` is normalised on save (leading whitespace stripped, first letter
    upper-cased, rest lower-cased) so catalogue duplicates look alike.
    """

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    base_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    unit = models.CharField(
        max_length=8,
        choices=ProductUnit.choices,
        default=ProductUnit.UNIT,
    )
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.ACTIVE,
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
        ]

    @staticmethod
    def normalize_name(value: str) -> str:
        trimmed = value.lstrip()
        return trimmed[:1].upper() + trimmed[1:].lower()

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.sku:
            self.sku = self.sku.strip().upper()
        if self.name:
            self.name = self.normalize_name(self.name)
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                sku=self.sku,
                name=self.name,
            )

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"


class PriceList(BaseModel):
    """A named set of per-product price overrides (e.g. ``WEB``, ``MAYORISTA``)."""

    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=255)

    class Meta:
        db_table = "price_lists"
        ordering = ["code"]

    def __str__(self) -> str:
        return self.code


class PriceListEntry(BaseModel):
    price_list = models.ForeignKey(
        PriceList,
        on_delete=models.CASCADE,
        related_name="entries",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="price_list_entries",
    )
    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    class Meta:
        db_table = "price_list_entries"
        constraints = [
            models.UniqueConstraint(
                fields=["price_list", "product"],
                name="price_list_entries_unique_product",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.price_list_id}:{self.product_id} = {self.unit_price}"


class DailyPrice(BaseModel):
    """One entry of the daily price feed; the newest entry wins."""

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="daily_prices",
    )
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    effective_date = models.DateField()

    class Meta:
        db_table = "daily_prices"
        ordering = ["-effective_date", "-created_at"]
        indexes = [
            models.Index(
                fields=["product", "-effective_date"],
                name="daily_prices_product_date_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_id} @ {self.effective_date}: {self.price}"
