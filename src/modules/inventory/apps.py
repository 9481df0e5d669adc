from django.apps import AppConfig


class InventoryConfig(AppConfig):
    name = "modules.inventory"
    label = "inventory"

    def ready(self) -> None:
        from modules.inventory.events import StockAdjusted
        from modules.inventory.handlers import stock_adjusted_handler
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(StockAdjusted, stock_adjusted_handler)
