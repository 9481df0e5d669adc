"""Order domain constants.

Defines the lifecycle and payment enums, the stock-allocation modes and
the valid lifecycle transitions of the order state machine.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pendiente"
    DELIVERED = "DELIVERED", "Entregado"
    CANCELLED = "CANCELLED", "Cancelado"


class PaymentStatus(models.TextChoices):
    """Independent axis, driven by the payment collaborator."""

    PENDING = "PENDING", "Pendiente"
    PAID = "PAID", "Pagado"


class AllocationMode(models.TextChoices):
    """When stock is decremented for an order.

    ``ON_CREATE``: allocated while the order is created (web and most staff
    orders).  ``ON_DELIVERY``: allocated at hand-off by ``confirm_delivery``.
    An order uses exactly one mode, so stock is never allocated twice.
    """

    ON_CREATE = "ON_CREATE", "Al crear"
    ON_DELIVERY = "ON_DELIVERY", "Al entregar"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

INITIAL_STATES: set[str] = {OrderStatus.PENDING, OrderStatus.DELIVERED}

ORDER_NUMBER_MAX_RETRIES = 5

STAFF_CHANNEL = "STAFF"
