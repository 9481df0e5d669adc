"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework import serializers

from modules.orders.constants import (
    INITIAL_STATES,
    STAFF_CHANNEL,
    AllocationMode,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.models import Order, OrderItem, OrderStatusHistory

User = get_user_model()

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ContactSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=64)
    address = serializers.CharField(max_length=255)
    email = serializers.EmailField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class CreateDirectOrderItemSerializer(serializers.Serializer):
    """Validates a single staff line item (price supplied by the operator)."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.00")
    )
    comment = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=255
    )


class CreateDirectOrderSerializer(serializers.Serializer):
    """Validates the staff order creation payload.

    The operator is always the authenticated user, never the payload.
    """

    customer_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    channel = serializers.CharField(required=False, default=STAFF_CHANNEL, max_length=32)
    status = serializers.ChoiceField(
        choices=[(s.value, s.label) for s in OrderStatus if s in INITIAL_STATES],
        default=OrderStatus.PENDING,
    )
    payment_status = serializers.ChoiceField(
        choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )
    allocation_mode = serializers.ChoiceField(
        choices=AllocationMode.choices, default=AllocationMode.ON_CREATE
    )
    placed_at = serializers.DateTimeField(required=False, allow_null=True, default=None)
    assembler = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(), required=False, allow_null=True, default=None
    )
    delivery_agent = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(), required=False, allow_null=True, default=None
    )
    items = CreateDirectOrderItemSerializer(many=True, allow_empty=False)

    def validate(self, attrs):
        if (
            attrs["status"] == OrderStatus.DELIVERED
            and attrs["allocation_mode"] != AllocationMode.ON_CREATE
        ):
            raise serializers.ValidationError(
                {"allocation_mode": "Orders created as DELIVERED must use ON_CREATE."}
            )
        return attrs


class CreateWebOrderItemSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class CreateWebOrderSerializer(serializers.Serializer):
    """Guest checkout payload: contact details plus items, no prices."""

    contact = ContactSerializer()
    items = CreateWebOrderItemSerializer(many=True, allow_empty=False)


class CancelOrderSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class DeliverOrderSerializer(serializers.Serializer):
    delivery_agent = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(), required=False, allow_null=True, default=None
    )


class UpdateAssignmentSerializer(serializers.Serializer):
    """Payment status and staff assignment; omitted fields stay as they are."""

    payment_status = serializers.ChoiceField(choices=PaymentStatus.choices, required=False)
    assembler = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(), required=False
    )
    delivery_agent = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(), required=False
    )

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError(
                "Provide payment_status, assembler or delivery_agent."
            )
        return attrs


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with product snapshot."""

    product_name = serializers.CharField(source="product.name", read_only=True)
    product_sku = serializers.CharField(source="product.sku", read_only=True)
    product_unit = serializers.CharField(source="product.unit", read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "product_sku",
            "product_unit",
            "stock_record_id",
            "quantity",
            "unit_price",
            "subtotal",
            "comment",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "user_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "operator_id",
            "assembler_id",
            "delivery_agent_id",
            "channel",
            "status",
            "payment_status",
            "allocation_mode",
            "contact",
            "total_amount",
            "placed_at",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "channel",
            "status",
            "payment_status",
            "total_amount",
            "placed_at",
        ]
        read_only_fields = fields
