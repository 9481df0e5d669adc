"""Stock ledger models.

One flat row per (product, location) instead of lot-dated batches: the
allocation is O(1) per line item and "FIFO" means oldest ``last_updated``
first, not true first-in-first-out by receipt date.

Business rules implemented:
- Stock quantity never goes negative (DB check constraint + guarded update
  in the ledger repository).
- Records are never deleted while order items reference them (``PROTECT``).
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel


class Location(BaseModel):
    """A storage location (warehouse, shelf, store backroom)."""

    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=255)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "stock_locations"
        ordering = ["code"]

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"


class StockRecord(BaseModel):
    """Available quantity of one product at one location."""

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="stock_records",
    )
    location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        related_name="stock_records",
    )
    quantity = models.PositiveIntegerField(default=0)
    last_updated = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "stock_records"
        ordering = ["last_updated"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "location"],
                name="stock_records_unique_product_location",
            ),
            models.CheckConstraint(
                check=models.Q(quantity__gte=0),
                name="stock_records_quantity_non_negative",
            ),
        ]
        indexes = [
            models.Index(
                fields=["product", "last_updated"],
                name="stock_product_freshness_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_id}@{self.location_id}: {self.quantity}"
