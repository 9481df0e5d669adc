"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions propagate to ``modules.core.exceptions.api_exception_handler``,
which maps each kind to its HTTP status; the view never swallows them.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.orders.dtos import (
    ContactDTO,
    CreateDirectOrderDTO,
    CreateWebOrderDTO,
    DirectOrderItemDTO,
    OrderHeaderDTO,
    WebOrderItemDTO,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateDirectOrderSerializer,
    CreateWebOrderSerializer,
    DeliverOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    UpdateAssignmentSerializer,
)
from modules.orders.services import build_order_service

THROTTLE_SCOPES = {
    "create": "order_creation",
    "web": "web_order_creation",
    "list": "order_listing",
    "retrieve": "order_listing",
    "assignment": "order_update",
}


def _pydantic_to_drf(exc: PydanticValidationError) -> ValidationError:
    detail: dict[str, list[str]] = {}
    for error in exc.errors():
        attr = ".".join(str(part) for part in error["loc"]) or "non_field_errors"
        detail.setdefault(attr, []).append(error["msg"])
    return ValidationError(detail)


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all writes go through the
    service layer, reads through the repository.
    """

    queryset = Order.objects.none()
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer__name"]
    ordering_fields = ["placed_at", "total_amount", "status"]
    ordering = ["-placed_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._repository = OrderDjangoRepository()
        self._service = build_order_service()

    def get_permissions(self):
        if self.action == "web":
            return [AllowAny()]
        return super().get_permissions()

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttling scope per action."""
        self.throttle_scope = THROTTLE_SCOPES.get(self.action)
        return super().get_throttles()

    def get_queryset(self):
        return self._repository.queryset()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Staff path: prices come from the payload, the operator is the
        authenticated user.
        """
        serializer = CreateDirectOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            dto = CreateDirectOrderDTO(
                header=OrderHeaderDTO(
                    operator_id=request.user.id,
                    customer_id=data["customer_id"],
                    channel=data["channel"],
                    status=data["status"],
                    payment_status=data["payment_status"],
                    allocation_mode=data["allocation_mode"],
                    placed_at=data["placed_at"],
                    assembler_id=data["assembler"].id if data["assembler"] else None,
                    delivery_agent_id=(
                        data["delivery_agent"].id if data["delivery_agent"] else None
                    ),
                ),
                items=[DirectOrderItemDTO(**item) for item in data["items"]],
            )
        except PydanticValidationError as exc:
            raise _pydantic_to_drf(exc) from exc

        order = self._service.create_direct(dto)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"])
    def web(self, request: Request) -> Response:
        """POST /api/v1/orders/web/

        Guest checkout.  Anonymous; prices are resolved server-side.
        """
        serializer = CreateWebOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            dto = CreateWebOrderDTO(
                contact=ContactDTO(**data["contact"]),
                items=[WebOrderItemDTO(**item) for item in data["items"]],
            )
        except PydanticValidationError as exc:
            raise _pydantic_to_drf(exc) from exc

        order = self._service.create_from_web(dto)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (status, payment status, channel, customer, operator,
        date range) is handled by ``OrderFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(pk)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Lifecycle actions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels a pending order and restores the stock it allocated.
        """
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self._service.cancel(
            pk,
            notes=serializer.validated_data["notes"],
            user_id=request.user.id,
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def deliver(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/deliver/"""
        serializer = DeliverOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        agent = serializer.validated_data["delivery_agent"]

        order = self._service.confirm_delivery(
            pk,
            delivery_agent_id=agent.id if agent else None,
            user_id=request.user.id,
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["patch"])
    def assignment(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/assignment/

        Updates payment status, assembler and delivery agent in any status.
        Never changes the order status or stock.
        """
        serializer = UpdateAssignmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = self._service.update_assignment(
            pk,
            payment_status=data.get("payment_status"),
            assembler_id=data["assembler"].id if "assembler" in data else None,
            delivery_agent_id=(
                data["delivery_agent"].id if "delivery_agent" in data else None
            ),
        )
        return Response(OrderSerializer(order).data)
