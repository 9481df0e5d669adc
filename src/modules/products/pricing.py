"""Price Resolver.

Given a product and a price list, returns the unit price to charge using an
ordered fallback chain (first match wins):

1. Explicit ``PriceListEntry`` for the product in the designated list.
2. Newest ``DailyPrice`` already in effect (``effective_date`` on or before
   today), only when the calling flow asks for it (web orders).
3. ``Product.base_price``.
4. ``Decimal("0.00")``.  Missing pricing metadata must not fail an order;
   rejecting zero-priced lines is a caller policy.

Pure reads.  Call it inside the order's ``transaction.atomic`` block so the
price is fixed at commit time.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

import structlog
from django.utils import timezone

from modules.products.models import DailyPrice, PriceList, PriceListEntry, Product

logger = structlog.get_logger(__name__)

ZERO_PRICE = Decimal("0.00")


class PriceResolver:
    def resolve_price(
        self,
        product_id: Any,
        price_list_id: Optional[Any],
        include_daily: bool = False,
    ) -> Decimal:
        log = logger.bind(
            product_id=str(product_id),
            price_list_id=str(price_list_id) if price_list_id else None,
        )

        if price_list_id is not None:
            entry_price = (
                PriceListEntry.objects.filter(
                    price_list_id=price_list_id, product_id=product_id
                )
                .values_list("unit_price", flat=True)
                .first()
            )
            if entry_price is not None:
                log.debug("price.resolved", source="price_list", price=str(entry_price))
                return entry_price

        if include_daily:
            daily_price = (
                DailyPrice.objects.filter(
                    product_id=product_id, effective_date__lte=timezone.localdate()
                )
                .order_by("-effective_date", "-created_at")
                .values_list("price", flat=True)
                .first()
            )
            if daily_price is not None:
                log.debug("price.resolved", source="daily", price=str(daily_price))
                return daily_price

        base_price = (
            Product.objects.filter(id=product_id)
            .values_list("base_price", flat=True)
            .first()
        )
        if base_price is not None:
            log.debug("price.resolved", source="base_price", price=str(base_price))
            return base_price

        log.warning("price.unresolved", fallback=str(ZERO_PRICE))
        return ZERO_PRICE

    def resolve_price_list_id(self, code: Optional[str]) -> Optional[Any]:
        """Map a configured price-list code to its id (``None`` if absent)."""
        if not code:
            return None
        price_list_id = (
            PriceList.objects.filter(code=code).values_list("id", flat=True).first()
        )
        if price_list_id is None:
            logger.warning("price_list.not_found", code=code)
        return price_list_id
