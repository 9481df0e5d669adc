"""Customer model.

Customers are referenced by orders (nullable: web orders may belong to the
configured guest customer or to nobody).  ``last_purchase_at`` is the only
field the order engine writes, through ``record_purchase``.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import SoftDeleteModel


class Customer(SoftDeleteModel):
    """Customer aggregate root."""

    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=254, blank=True, default="")
    phone = models.CharField(max_length=30, blank=True, default="")
    address = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)
    last_purchase_at = models.DateTimeField(null=True, blank=True, default=None)

    class Meta:
        db_table = "customers"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active"], name="customers_active_idx"),
        ]

    def __str__(self) -> str:
        return self.name
