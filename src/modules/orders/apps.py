from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.events import (
            OrderAssignmentUpdated,
            OrderCancelled,
            OrderCreated,
            OrderDelivered,
        )
        from modules.orders.handlers import (
            order_assignment_updated_handler,
            order_cancelled_handler,
            order_created_handler,
            order_delivered_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderCreated, order_created_handler)
        event_bus.subscribe(OrderCancelled, order_cancelled_handler)
        event_bus.subscribe(OrderDelivered, order_delivered_handler)
        event_bus.subscribe(OrderAssignmentUpdated, order_assignment_updated_handler)
