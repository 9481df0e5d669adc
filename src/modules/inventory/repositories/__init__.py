from modules.inventory.repositories.django_repository import (
    StockLedgerDjangoRepository,
)
from modules.inventory.repositories.interfaces import IStockLedger

__all__ = ["IStockLedger", "StockLedgerDjangoRepository"]
