"""Order service layer (Use Cases).

Orchestrates the order/inventory transaction engine: order creation with
stock allocation, cancellation with stock reversal, delivery confirmation
and payment/staff assignment updates.  Every command is one
``transaction.atomic`` unit of work: any error raised inside it rolls back
the order, its items, every stock adjustment and every outbox row written
so far.

Business rules enforced:
- Lifecycle ``PENDING -> DELIVERED | CANCELLED``; both targets are terminal.
- A line item is allocated from a single stock record (the oldest one that
  can cover it); quantities are never split across records.
- Items are processed in product-id order so concurrent orders lock stock
  records in the same sequence.
- Unit prices are frozen on the line item at creation time.
- Stock is decremented exactly once per order: at creation for
  ``ON_CREATE`` orders, at delivery for ``ON_DELIVERY`` orders.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

import structlog
from django.db import DatabaseError, transaction
from django.utils import timezone

from modules.orders.builder import OrderAggregateBuilder
from modules.orders.constants import AllocationMode, OrderStatus, PaymentStatus
from modules.orders.dtos import OrderHeaderDTO
from modules.orders.events import (
    OrderAssignmentUpdated,
    OrderCancelled,
    OrderCreated,
    OrderDelivered,
)
from modules.orders.exceptions import (
    CustomerNotFound,
    InsufficientStock,
    InvalidStateTransition,
    OrderNotFound,
    ProductNotFound,
    StockRecordNotFound,
)

if TYPE_CHECKING:
    from uuid import UUID

    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.inventory.models import StockRecord
    from modules.inventory.repositories.interfaces import IStockLedger
    from modules.orders.builder import OrderDraft
    from modules.orders.config import OrderDefaults
    from modules.orders.dtos import CreateDirectOrderDTO, CreateWebOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.models import Product
    from modules.products.pricing import PriceResolver
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories, the price resolver and the deployment defaults
    via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        customer_repository: ICustomerRepository,
        stock_ledger: IStockLedger,
        price_resolver: PriceResolver,
        defaults: OrderDefaults,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._customer_repo = customer_repository
        self._ledger = stock_ledger
        self._pricing = price_resolver
        self._defaults = defaults
        self._builder = OrderAggregateBuilder(defaults)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_direct(self, dto: CreateDirectOrderDTO) -> Order:
        """Create an order from the staff/API path.

        Unit prices come from the caller.  With ``ON_CREATE`` allocation each
        item decrements stock right away; with ``ON_DELIVERY`` nothing is
        touched until ``confirm_delivery``.  After the order is persisted
        the customer's last purchase is recorded on a best-effort basis.

        Raises:
            CustomerNotFound: the given customer does not exist.
            ProductNotFound: a referenced product does not exist.
            InsufficientStock: no single stock record covers an item.
            StockConflict: a concurrent allocation won the race.
        """
        header = dto.header
        log = logger.bind(
            channel=header.channel,
            operator_id=header.operator_id,
            allocation_mode=header.allocation_mode,
        )
        log.info("order.creation_started", item_count=len(dto.items))

        if header.customer_id is not None:
            if not self._customer_repo.get_by_id(header.customer_id):
                raise CustomerNotFound(
                    f"Customer {header.customer_id} not found.",
                    customer_id=header.customer_id,
                )

        products = self._load_products([item.product_id for item in dto.items])
        draft = self._builder.build_order(header)
        allocate = header.allocation_mode == AllocationMode.ON_CREATE

        for item in sorted(dto.items, key=lambda i: str(i.product_id)):
            product = products[item.product_id]
            stock_record = self._allocate(product, item.quantity, log) if allocate else None
            draft.add_item(
                product_id=product.id,
                quantity=item.quantity,
                unit_price=item.unit_price,
                comment=item.comment,
                stock_record_id=stock_record.id if stock_record else None,
            )

        order = self._persist(draft, user_id=header.operator_id, log=log)

        if order.customer_id is not None:
            self._record_purchase(order.customer_id, log)

        return self._order_repo.get_by_id(order.id) or order

    @transaction.atomic
    def create_from_web(self, dto: CreateWebOrderDTO) -> Order:
        """Create a guest order from the public web form.

        Customer, operator, channel and price list come from the configured
        defaults; prices are resolved server-side with the daily price feed
        enabled.  Every product is checked before any stock is touched.

        Raises:
            ProductNotFound: a referenced product does not exist.
            InsufficientStock: no single stock record covers an item.
            StockConflict: a concurrent allocation won the race.
        """
        defaults = self._defaults
        header = OrderHeaderDTO(
            operator_id=defaults.system_user_id,
            channel=defaults.web_channel,
        )
        log = logger.bind(channel=header.channel, operator_id=header.operator_id)
        log.info("order.web_creation_started", item_count=len(dto.items))

        products = self._load_products([item.product_id for item in dto.items])
        draft = self._builder.build_order(header, contact=dto.contact)
        price_list_id = self._pricing.resolve_price_list_id(defaults.web_price_list_code)

        for item in sorted(dto.items, key=lambda i: str(i.product_id)):
            product = products[item.product_id]
            unit_price = self._pricing.resolve_price(
                product.id, price_list_id, include_daily=True
            )
            stock_record = self._allocate(product, item.quantity, log)
            draft.add_item(
                product_id=product.id,
                quantity=item.quantity,
                unit_price=unit_price,
                stock_record_id=stock_record.id,
            )

        order = self._persist(draft, user_id=None, log=log)
        return self._order_repo.get_by_id(order.id) or order

    @transaction.atomic
    def cancel(
        self,
        order_id: Any,
        notes: str = "",
        user_id: Optional[int] = None,
    ) -> Order:
        """Cancel a pending order and give its stock back.

        Acquires a row-level lock on the order **first** so two concurrent
        cancellations cannot restore the same stock twice.

        Raises:
            OrderNotFound: order does not exist.
            InvalidStateTransition: the order is not ``PENDING``.
            StockRecordNotFound: an item's stock record cannot be found.
        """
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.", order_id=order_id)

        log = logger.bind(order_id=str(order.id), current_status=order.status)

        if not order.can_transition_to(OrderStatus.CANCELLED):
            log.warning("order.cancel_not_allowed")
            raise InvalidStateTransition(
                f"Cannot cancel order {order.order_number} in status {order.status}.",
                order_id=order.id,
                status=order.status,
            )

        restored = 0
        if order.holds_allocated_stock:
            items = sorted(order.items.all(), key=lambda i: str(i.product_id))
            for item in items:
                record_id = item.stock_record_id
                if record_id is None:
                    record = self._ledger.find_for_product(item.product_id)
                    if record is None:
                        raise StockRecordNotFound(
                            f"No stock record found for product {item.product_id}.",
                            product_id=item.product_id,
                        )
                    record_id = record.id
                record = self._ledger.adjust(record_id, item.quantity)
                restored += 1
                log.info(
                    "order.stock_released",
                    product_id=str(item.product_id),
                    stock_record_id=str(record.id),
                    quantity=item.quantity,
                    restored_stock=record.quantity,
                )

        old_status = order.status
        order.status = OrderStatus.CANCELLED
        order.add_domain_event(
            OrderCancelled(aggregate_id=order.id, restored_items=restored)
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.CANCELLED,
            notes=notes or "Order cancelled",
            old_status=old_status,
            user_id=user_id,
        )

        log.info("order.cancelled", restored_items=restored)
        return self._order_repo.get_by_id(order.id) or order

    @transaction.atomic
    def confirm_delivery(
        self,
        order_id: Any,
        delivery_agent_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> Order:
        """Mark a pending order as delivered.

        ``ON_DELIVERY`` orders allocate their stock now; ``ON_CREATE`` orders
        already did.  Confirming an order that is already delivered is a
        no-op.

        Raises:
            OrderNotFound: order does not exist.
            InvalidStateTransition: the order was cancelled.
            InsufficientStock: an ``ON_DELIVERY`` item cannot be covered.
        """
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.", order_id=order_id)

        log = logger.bind(order_id=str(order.id), current_status=order.status)

        if order.status == OrderStatus.DELIVERED:
            log.info("order.delivery_already_confirmed")
            return self._order_repo.get_by_id(order.id) or order

        if not order.can_transition_to(OrderStatus.DELIVERED):
            log.warning("order.delivery_not_allowed")
            raise InvalidStateTransition(
                f"Cannot deliver order {order.order_number} in status {order.status}.",
                order_id=order.id,
                status=order.status,
            )

        if order.allocation_mode == AllocationMode.ON_DELIVERY:
            items = sorted(order.items.all(), key=lambda i: str(i.product_id))
            for item in items:
                record = self._allocate(item.product, item.quantity, log)
                item.stock_record_id = record.id
                item.save(update_fields=["stock_record"])

        old_status = order.status
        order.status = OrderStatus.DELIVERED
        if delivery_agent_id is not None:
            order.delivery_agent_id = delivery_agent_id
        order.add_domain_event(OrderDelivered(aggregate_id=order.id))
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.DELIVERED,
            notes="Delivery confirmed",
            old_status=old_status,
            user_id=user_id,
        )

        log.info("order.delivered")
        return self._order_repo.get_by_id(order.id) or order

    @transaction.atomic
    def update_assignment(
        self,
        order_id: Any,
        payment_status: Optional[str] = None,
        assembler_id: Optional[int] = None,
        delivery_agent_id: Optional[int] = None,
    ) -> Order:
        """Update payment status and assigned staff of an order.

        ``None`` leaves a field unchanged.  Allowed in every status: a
        delivered order can still be marked as paid.  Status, items and
        stock are never touched.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.", order_id=order_id)

        log = logger.bind(order_id=str(order.id), current_status=order.status)

        changes: Dict[str, Any] = {}
        if payment_status is not None and payment_status != order.payment_status:
            changes["payment_status"] = PaymentStatus(payment_status).value
        if assembler_id is not None and assembler_id != order.assembler_id:
            changes["assembler_id"] = assembler_id
        if delivery_agent_id is not None and delivery_agent_id != order.delivery_agent_id:
            changes["delivery_agent_id"] = delivery_agent_id

        if not changes:
            log.info("order.assignment_unchanged")
            return self._order_repo.get_by_id(order.id) or order

        for field_name, value in changes.items():
            setattr(order, field_name, value)
        order.add_domain_event(OrderAssignmentUpdated(aggregate_id=order.id, **changes))
        self._order_repo.save(order)

        log.info("order.assignment_updated", **changes)
        return self._order_repo.get_by_id(order.id) or order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Any) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.", order_id=order_id)
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """Return a list of orders, optionally filtered."""
        return self._order_repo.list(filters)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_products(self, product_ids: Sequence[UUID]) -> Dict[Any, Product]:
        products = self._product_repo.get_many(product_ids)
        for product_id in product_ids:
            if product_id not in products:
                raise ProductNotFound(
                    f"Product {product_id} not found.", product_id=product_id
                )
        return products

    def _allocate(self, product: Product, quantity: int, log: Any) -> StockRecord:
        record = self._ledger.find_allocatable(product.id, quantity)
        if record is None:
            available = self._ledger.total_available(product.id)
            log.warning(
                "order.insufficient_stock",
                product_id=str(product.id),
                requested=quantity,
                available=available,
            )
            raise InsufficientStock(
                f"Insufficient stock for {product.name} (ID {product.id}): "
                f"requested {quantity}, available {available}.",
                product_id=product.id,
                product_name=product.name,
                requested=quantity,
                available=available,
            )

        record = self._ledger.adjust(record.id, -quantity)
        log.info(
            "order.stock_allocated",
            product_id=str(product.id),
            stock_record_id=str(record.id),
            quantity=quantity,
            remaining=record.quantity,
        )
        return record

    def _persist(self, draft: OrderDraft, user_id: Optional[int], log: Any) -> Order:
        order = self._order_repo.create(draft)
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                channel=order.channel,
                total_amount=str(order.total_amount),
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=order.status,
            notes="Order created",
            user_id=user_id,
        )
        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=str(order.total_amount),
        )
        return order

    def _record_purchase(self, customer_id: Any, log: Any) -> None:
        """Best-effort profile update; runs in a savepoint so a failure
        cannot poison the surrounding order transaction."""
        try:
            with transaction.atomic():
                self._customer_repo.record_purchase(customer_id, timezone.now())
        except (CustomerNotFound, DatabaseError) as exc:
            log.warning(
                "order.purchase_record_failed",
                customer_id=str(customer_id),
                error=str(exc),
            )


def build_order_service(defaults: Optional[OrderDefaults] = None) -> OrderService:
    """Wire ``OrderService`` with the Django-backed collaborators."""
    from modules.customers.repositories import CustomerDjangoRepository
    from modules.inventory.repositories import StockLedgerDjangoRepository
    from modules.orders.config import OrderDefaults
    from modules.orders.repositories import OrderDjangoRepository
    from modules.products.pricing import PriceResolver
    from modules.products.repositories import ProductDjangoRepository

    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        stock_ledger=StockLedgerDjangoRepository(),
        price_resolver=PriceResolver(),
        defaults=defaults or OrderDefaults.from_settings(),
    )
