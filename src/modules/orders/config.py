"""Deployment defaults consumed by the web order flow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from django.conf import settings

from modules.orders.constants import STAFF_CHANNEL

WEB_CHANNEL = "WEB"
WEB_PRICE_LIST_CODE = "WEB"


@dataclass(frozen=True)
class OrderDefaults:
    """Who a web order is booked for and by, and how it is priced.

    ``guest_customer_id`` may be ``None``: web orders are then stored without
    a customer and rely on the contact snapshot.  A missing price-list code
    falls back to ``WEB_PRICE_LIST_CODE``; an empty one disables the list tier.
    """

    system_user_id: int
    guest_customer_id: Optional[Any] = None
    web_channel: str = WEB_CHANNEL
    web_price_list_code: Optional[str] = WEB_PRICE_LIST_CODE
    staff_channel: str = STAFF_CHANNEL

    @classmethod
    def from_settings(cls, source: Optional[Mapping[str, Any]] = None) -> OrderDefaults:
        values = source if source is not None else settings.ORDER_DEFAULTS
        return cls(
            system_user_id=int(values["SYSTEM_USER_ID"]),
            guest_customer_id=values.get("GUEST_CUSTOMER_ID") or None,
            web_channel=values.get("WEB_CHANNEL") or WEB_CHANNEL,
            web_price_list_code=(
                values.get("WEB_PRICE_LIST_CODE", WEB_PRICE_LIST_CODE) or None
            ),
        )
